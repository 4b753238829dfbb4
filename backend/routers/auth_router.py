"""Authentication router endpoints."""

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import LOGIN_RATE_LIMIT, REGISTER_RATE_LIMIT, limiter
from helpers.request_utils import RequestContext, get_request_context
from repositories.database import get_db
from services import AuthService, PermissionService, UserService

router = APIRouter(prefix="/auth", tags=["auth"])


# Admin accounts


@router.post("/admin/login", response_model=schemas.AdminToken)
@limiter.limit(LOGIN_RATE_LIMIT)
def admin_login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> schemas.AdminToken:
    """
    Log in to the admin dashboard.

    Returns a bearer token and the admin's role info.
    """
    return AuthService.login_admin(
        db, form_data.username, form_data.password, get_request_context(request)
    )


@router.post("/admin/logout", response_model=schemas.MessageResponse)
def admin_logout(
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(auth.get_current_admin),
    context: RequestContext = Depends(get_request_context),
) -> schemas.MessageResponse:
    """Record a logout. The client discards its token."""
    AuthService.logout_admin(db, current_admin, context)
    return schemas.MessageResponse(message="Logged out")


@router.get("/admin/me", response_model=schemas.Admin)
def read_admin_me(
    current_admin: db_models.Admin = Depends(auth.get_current_admin),
) -> db_models.Admin:
    return current_admin


@router.get("/admin/me/role-info", response_model=schemas.RoleInfo)
def read_admin_role_info(
    current_admin: db_models.Admin = Depends(auth.get_current_admin),
) -> schemas.RoleInfo:
    return PermissionService.get_role_info(current_admin)


@router.put("/admin/password", response_model=schemas.MessageResponse)
def change_admin_password(
    change: schemas.PasswordChange,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(auth.get_current_admin),
    context: RequestContext = Depends(get_request_context),
) -> schemas.MessageResponse:
    """Change the signed-in admin's password. The current password is required."""
    AuthService.change_admin_password(db, current_admin, change, context)
    return schemas.MessageResponse(message="Password updated")


# Reporter accounts


@router.post("/register", response_model=schemas.User, status_code=201)
@limiter.limit(REGISTER_RATE_LIMIT)
def register(
    request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)
) -> db_models.User:
    """
    Register a reporter account.

    Rate limited to 3 per minute. Fails when registration is disabled.
    """
    return UserService.register(db, user)


@router.post("/login", response_model=schemas.Token)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> schemas.Token:
    """Log in as a reporter with username or email."""
    return AuthService.login_user(db, form_data.username, form_data.password)


@router.get("/me", response_model=schemas.User)
def read_users_me(
    current_user: db_models.User = Depends(auth.get_current_user),
) -> db_models.User:
    return current_user
