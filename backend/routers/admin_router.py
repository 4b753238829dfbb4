"""Admin dashboard and admin account management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationSkip, PaginationLimit
from helpers.request_utils import RequestContext, get_request_context
from models.permissions import AdminRole, Permission
from repositories.database import get_db
from services import AdminService, AnalyticsService, PermissionService

router = APIRouter(prefix="/admin", tags=["admin"])


def _require_admin_permission(
    permission: Permission, action: db_models.AuditAction
):
    return auth.require_permission(
        permission,
        action,
        db_models.AuditCategory.ADMINS,
        resource_type="admin",
        resource_param="admin_id",
    )


@router.get("/role-info", response_model=schemas.RoleInfo)
def get_role_info(
    current_admin: db_models.Admin = Depends(auth.get_current_admin),
) -> schemas.RoleInfo:
    """Role, effective permissions and capability flags of the caller."""
    return PermissionService.get_role_info(current_admin)


@router.get("/dashboard", response_model=schemas.DashboardSummary)
def get_dashboard(
    recent_limit: int = Query(5, ge=1, le=20),
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.ANALYTICS_VIEW)
    ),
) -> schemas.DashboardSummary:
    return AnalyticsService.get_dashboard_summary(db, recent_limit)


# Admin accounts


@router.get("/admins", response_model=schemas.AdminListResponse)
def list_admins(
    role: Optional[AdminRole] = None,
    is_active: Optional[bool] = None,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 50,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.ADMIN_VIEW)
    ),
) -> schemas.AdminListResponse:
    return AdminService.list_admins(db, role, is_active, skip, limit)


@router.post("/admins", response_model=schemas.Admin, status_code=201)
def create_admin(
    admin_data: schemas.AdminCreate,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        _require_admin_permission(
            Permission.ADMIN_CREATE, db_models.AuditAction.ADMIN_CREATE
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Admin:
    """
    Create an admin account.

    Without explicit permissions the role's defaults are granted.
    """
    return AdminService.create_admin(db, admin_data, current_admin, context)


@router.get("/admins/{admin_id}", response_model=schemas.Admin)
def get_admin(
    admin_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.ADMIN_VIEW)
    ),
) -> db_models.Admin:
    return AdminService.get_admin(db, admin_id)


@router.put("/admins/{admin_id}", response_model=schemas.Admin)
def update_admin(
    admin_id: int,
    update: schemas.AdminUpdate,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        _require_admin_permission(
            Permission.ADMIN_EDIT, db_models.AuditAction.ADMIN_EDIT
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Admin:
    """Update profile fields or activate/deactivate an admin."""
    return AdminService.update_admin(db, admin_id, update, current_admin, context)


@router.put("/admins/{admin_id}/role", response_model=schemas.Admin)
def change_admin_role(
    admin_id: int,
    change: schemas.AdminRoleChange,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        _require_admin_permission(
            Permission.ADMIN_ROLE_CHANGE, db_models.AuditAction.ADMIN_ROLE_CHANGE
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Admin:
    """Change an admin's role. Permissions are reset to the new role's defaults."""
    return AdminService.change_role(db, admin_id, change.role, current_admin, context)


@router.put("/admins/{admin_id}/permissions", response_model=schemas.Admin)
def set_admin_permissions(
    admin_id: int,
    update: schemas.AdminPermissionsUpdate,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        _require_admin_permission(
            Permission.ADMIN_EDIT, db_models.AuditAction.ADMIN_EDIT
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Admin:
    return AdminService.set_permissions(
        db, admin_id, update.permissions, current_admin, context
    )


@router.post("/admins/{admin_id}/permissions/{permission}", response_model=schemas.Admin)
def grant_admin_permission(
    admin_id: int,
    permission: Permission,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        _require_admin_permission(
            Permission.ADMIN_EDIT, db_models.AuditAction.ADMIN_EDIT
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Admin:
    return AdminService.grant_permission(
        db, admin_id, permission, current_admin, context
    )


@router.delete(
    "/admins/{admin_id}/permissions/{permission}", response_model=schemas.Admin
)
def revoke_admin_permission(
    admin_id: int,
    permission: Permission,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        _require_admin_permission(
            Permission.ADMIN_EDIT, db_models.AuditAction.ADMIN_EDIT
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Admin:
    return AdminService.revoke_permission(
        db, admin_id, permission, current_admin, context
    )


@router.delete("/admins/{admin_id}", status_code=204)
def delete_admin(
    admin_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        _require_admin_permission(
            Permission.ADMIN_DELETE, db_models.AuditAction.ADMIN_DELETE
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> Response:
    """
    Delete an admin account.

    Admins cannot delete themselves, and an admin who has reviewed reports
    is kept for the record (deactivate them instead).
    """
    AdminService.delete_admin(db, admin_id, current_admin, context)
    return Response(status_code=204)
