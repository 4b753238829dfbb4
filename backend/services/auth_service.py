"""
Authentication Service

Handles login, logout and password changes for admin and reporter accounts.
"""

from typing import Optional

import sentry_sdk
from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
from authentication.auth import (
    create_admin_token,
    create_user_token,
    get_password_hash,
    verify_password,
)
from helpers.password_validation import (
    PasswordRequirements,
    validate_password_complexity,
)
from helpers.request_utils import RequestContext
from helpers.time_utils import utc_now
from models.config import settings
from models.exceptions import (
    InactiveAccountException,
    InvalidCredentialsException,
    ValidationException,
)
from repositories import db_models
from repositories.admin_repository import AdminRepository
from repositories.user_repository import UserRepository
from services.audit_service import AuditService
from services.permission_service import PermissionService
from services.settings_service import SettingsService


class AuthService:
    """Service for authentication business logic."""

    @staticmethod
    def check_new_password(db: Session, password: str) -> None:
        """
        Validate a new password against the configured minimum length.

        Raises:
            ValidationException: If the password is too weak
        """
        min_length = int(SettingsService.get_value(db, "min_password_length"))
        is_valid, errors = validate_password_complexity(
            password, PasswordRequirements(min_length=min_length)
        )
        if not is_valid:
            raise ValidationException("; ".join(errors))

    @staticmethod
    def login_admin(
        db: Session,
        username: str,
        password: str,
        context: Optional[RequestContext] = None,
    ) -> schemas.AdminToken:
        """
        Authenticate an admin and create an access token.

        Args:
            db: Database session
            username: Admin username
            password: Admin password
            context: Caller IP and user agent for the audit entry

        Returns:
            Token plus the admin's role info

        Raises:
            InvalidCredentialsException: If username or password is incorrect
            InactiveAccountException: If the admin is deactivated
        """
        repo = AdminRepository(db)
        admin = repo.get_by_username(username.strip())
        if not admin or not verify_password(password, admin.hashed_password):
            logger.warning(f"Failed admin login for '{username}'")
            raise InvalidCredentialsException()
        if not admin.is_active:
            logger.warning(f"Login attempt on deactivated admin {admin.id}")
            sentry_sdk.capture_message(
                f"Login attempt on deactivated admin (admin_id={admin.id})",
                level="warning",
            )
            raise InactiveAccountException("Admin account is deactivated")

        admin.last_login_at = utc_now()
        repo.update(admin)

        AuditService.record(
            db,
            admin,
            db_models.AuditAction.LOGIN,
            db_models.AuditCategory.AUTH,
            f"{admin.username} logged in",
            resource_type="admin",
            resource_id=admin.id,
            context=context,
        )

        # nosec B106: "bearer" is OAuth2 token type, not a password
        return schemas.AdminToken(
            access_token=create_admin_token(admin),
            token_type="bearer",  # nosec B106
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            role_info=PermissionService.get_role_info(admin),
        )

    @staticmethod
    def logout_admin(
        db: Session, admin: db_models.Admin, context: Optional[RequestContext] = None
    ) -> None:
        """Record a logout. Tokens are stateless, so nothing is revoked."""
        AuditService.record(
            db,
            admin,
            db_models.AuditAction.LOGOUT,
            db_models.AuditCategory.AUTH,
            f"{admin.username} logged out",
            resource_type="admin",
            resource_id=admin.id,
            context=context,
        )

    @staticmethod
    def change_admin_password(
        db: Session,
        admin: db_models.Admin,
        change: schemas.PasswordChange,
        context: Optional[RequestContext] = None,
    ) -> None:
        """
        Change the signed-in admin's password.

        Raises:
            InvalidCredentialsException: If the current password is wrong
            ValidationException: If the new password is too weak or unchanged
        """
        if not verify_password(change.current_password, admin.hashed_password):
            raise InvalidCredentialsException()
        if change.current_password == change.new_password:
            raise ValidationException("New password must differ from the current one")
        AuthService.check_new_password(db, change.new_password)

        admin.hashed_password = get_password_hash(change.new_password)
        AdminRepository(db).update(admin)

        AuditService.record(
            db,
            admin,
            db_models.AuditAction.PASSWORD_CHANGE,
            db_models.AuditCategory.AUTH,
            f"{admin.username} changed their password",
            resource_type="admin",
            resource_id=admin.id,
            severity=db_models.AuditSeverity.MEDIUM,
            context=context,
        )

    @staticmethod
    def login_user(db: Session, identifier: str, password: str) -> schemas.Token:
        """
        Authenticate a reporter by username or email.

        Raises:
            InvalidCredentialsException: If the credentials are incorrect
            InactiveAccountException: If the account is deactivated or frozen
        """
        user = UserRepository(db).get_by_username_or_email(identifier.strip())
        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsException()
        if not user.is_active:
            raise InactiveAccountException("Account has been deactivated")
        if user.is_frozen:
            raise InactiveAccountException("Your account is frozen")

        return schemas.Token(
            access_token=create_user_token(user),
            token_type="bearer",  # nosec B106
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
