"""Reporter account management endpoints for admins."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from helpers.request_utils import RequestContext, get_request_context
from models.permissions import Permission
from repositories.database import get_db
from services import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=schemas.UserListResponse)
def list_users(
    search: Optional[str] = Query(None, max_length=100),
    is_frozen: Optional[bool] = None,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.USER_VIEW)
    ),
) -> schemas.UserListResponse:
    """List reporters, optionally matching username, email or name."""
    return UserService.list_users(db, search, is_frozen, skip, limit)


@router.get("/{user_id}", response_model=schemas.User)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.USER_VIEW)
    ),
) -> db_models.User:
    return UserService.get_user(db, user_id)


@router.post("/{user_id}/freeze", response_model=schemas.User)
def freeze_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(
            Permission.USER_FREEZE,
            db_models.AuditAction.USER_FREEZE,
            db_models.AuditCategory.USERS,
            resource_type="user",
            resource_param="user_id",
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.User:
    """Freeze a reporter. Frozen reporters cannot log in or submit."""
    return UserService.set_frozen(db, user_id, True, current_admin, context)


@router.post("/{user_id}/unfreeze", response_model=schemas.User)
def unfreeze_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(
            Permission.USER_FREEZE,
            db_models.AuditAction.USER_UNFREEZE,
            db_models.AuditCategory.USERS,
            resource_type="user",
            resource_param="user_id",
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.User:
    return UserService.set_frozen(db, user_id, False, current_admin, context)


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(
            Permission.USER_DELETE,
            db_models.AuditAction.USER_DELETE,
            db_models.AuditCategory.USERS,
            resource_type="user",
            resource_param="user_id",
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> Response:
    """Delete a reporter account. Their reports are kept."""
    UserService.delete_user(db, user_id, current_admin, context)
    return Response(status_code=204)
