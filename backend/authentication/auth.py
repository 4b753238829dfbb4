from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBearer,
    OAuth2PasswordBearer,
)
import jwt
from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.request_utils import get_request_context
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InactiveAccountException,
    InsufficientPermissionsException,
)
from models.permissions import Permission
from repositories.database import get_db

TOKEN_TYPE_ADMIN = "admin"
TOKEN_TYPE_USER = "user"

admin_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/admin/login")
user_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")
optional_bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password = plain_password.encode()
    # bcrypt rejects inputs over 72 bytes; no stored hash can match one
    if len(password) > 72:
        return False
    return bcrypt.checkpw(password, hashed_password.encode())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt


def create_admin_token(admin: db_models.Admin) -> str:
    return create_access_token({"sub": str(admin.id), "typ": TOKEN_TYPE_ADMIN})


def create_user_token(user: db_models.User) -> str:
    return create_access_token({"sub": str(user.id), "typ": TOKEN_TYPE_USER})


def _decode_subject(token: str, expected_type: str) -> int:
    """
    Decode a bearer token and return its subject ID.

    Raises:
        AuthenticationException: If the token is expired, malformed, or
            issued for the other kind of account.
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")

    if payload.get("typ") != expected_type:
        raise AuthenticationException("Could not validate credentials")
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationException("Could not validate credentials")


async def get_current_admin(
    token: str = Depends(admin_oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.Admin:
    """
    Get the admin behind the bearer token, re-read from the database.

    Raises:
        AuthenticationException: If credentials are invalid or the admin is gone.
        InactiveAccountException: If the admin has been deactivated.
    """
    admin_id = _decode_subject(token, TOKEN_TYPE_ADMIN)
    admin = db.query(db_models.Admin).filter(db_models.Admin.id == admin_id).first()
    if admin is None:
        raise AuthenticationException("Could not validate credentials")
    if not admin.is_active:
        raise InactiveAccountException("Admin account is deactivated")
    return admin


async def get_current_user(
    token: str = Depends(user_oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.User:
    """
    Get the reporter behind the bearer token.

    Raises:
        AuthenticationException: If credentials are invalid or the user is gone.
        InactiveAccountException: If the account is deactivated or frozen.
    """
    user_id = _decode_subject(token, TOKEN_TYPE_USER)
    user = db.query(db_models.User).filter(db_models.User.id == user_id).first()
    if user is None:
        raise AuthenticationException("Could not validate credentials")
    if not user.is_active:
        raise InactiveAccountException("Account has been deactivated")
    if user.is_frozen:
        raise InactiveAccountException("Your account is frozen")
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(
        optional_bearer_scheme
    ),
    db: Session = Depends(get_db),
) -> Optional[db_models.User]:
    """
    Get current reporter if authenticated, otherwise return None.

    If no credentials are provided, returns None (anonymous access).
    If credentials are provided but expired, raises AuthenticationException
    so the user knows to re-login (returns 401).
    If credentials are malformed or invalid, returns None.
    """
    if credentials is None:
        return None

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        return None

    if payload.get("typ") != TOKEN_TYPE_USER:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    return db.query(db_models.User).filter(db_models.User.id == user_id).first()


def require_permission(
    permission: Permission,
    audit_action: Optional[db_models.AuditAction] = None,
    audit_category: Optional[db_models.AuditCategory] = None,
    resource_type: Optional[str] = None,
    resource_param: Optional[str] = None,
) -> Callable:
    """
    Build a dependency that returns the current admin if they hold `permission`.

    When `audit_action` is given, refused attempts are written to the
    activity log with outcome "blocked".

    Args:
        permission: Token the endpoint requires
        audit_action: Action to record for a refused attempt
        audit_category: Category to record for a refused attempt
        resource_type: Resource type for the blocked entry
        resource_param: Path parameter holding the resource ID

    Raises:
        InsufficientPermissionsException: If the admin lacks the permission.
    """

    async def dependency(
        request: Request,
        admin: db_models.Admin = Depends(get_current_admin),
        db: Session = Depends(get_db),
    ) -> db_models.Admin:
        # Inline import to avoid circular deps
        from services.audit_service import AuditService
        from services.permission_service import PermissionResolver

        if PermissionResolver.for_admin(admin).has_permission(permission):
            return admin

        logger.warning(
            f"Admin {admin.id} denied {request.method} {request.url.path}: "
            f"missing {permission.value}"
        )
        if audit_action is not None:
            AuditService.record_blocked(
                db,
                admin,
                permission,
                audit_action,
                audit_category or db_models.AuditCategory.OVERRIDE,
                resource_type=resource_type,
                resource_id=(
                    request.path_params.get(resource_param) if resource_param else None
                ),
                context=get_request_context(request),
            )
        raise InsufficientPermissionsException(permission.value)

    return dependency
