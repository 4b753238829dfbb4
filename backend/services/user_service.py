"""
User Service

Reporter registration and admin-side management of reporter accounts.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.request_utils import RequestContext
from helpers.time_utils import utc_now
from models.exceptions import (
    RegistrationClosedException,
    UserNotFoundException,
    UsernameTakenException,
)
from repositories.user_repository import UserRepository
from services.audit_service import AuditService
from services.auth_service import AuthService
from services.settings_service import SettingsService


class UserService:
    """Service for reporter accounts."""

    @staticmethod
    def register(db: Session, user_data: schemas.UserCreate) -> db_models.User:
        """
        Create a reporter account.

        Raises:
            RegistrationClosedException: If registration is disabled
            UsernameTakenException: If the username or email is in use
            ValidationException: If the password is too weak
        """
        if not SettingsService.get_value(db, "allow_user_registration"):
            raise RegistrationClosedException()

        repo = UserRepository(db)
        if repo.username_or_email_exists(user_data.username, user_data.email):
            raise UsernameTakenException("Username or email is already registered")
        AuthService.check_new_password(db, user_data.password)

        user = db_models.User(
            username=user_data.username,
            email=user_data.email.lower(),
            name=user_data.name.strip(),
            phone=user_data.phone,
            hashed_password=auth.get_password_hash(user_data.password),
            is_active=True,
            is_frozen=False,
        )
        user = repo.create(user)
        logger.info(f"Reporter {user.id} registered")
        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> db_models.User:
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    @staticmethod
    def list_users(
        db: Session,
        search: Optional[str] = None,
        is_frozen: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> schemas.UserListResponse:
        items, total = UserRepository(db).search(search, is_frozen, skip, limit)
        return schemas.UserListResponse(
            items=[schemas.User.model_validate(u) for u in items],
            total=total,
            skip=skip,
            limit=limit,
        )

    @staticmethod
    def set_frozen(
        db: Session,
        user_id: int,
        frozen: bool,
        admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.User:
        """
        Freeze or unfreeze a reporter.

        Frozen reporters cannot log in or submit reports. Setting the
        current state again is a no-op.
        """
        repo = UserRepository(db)
        user = UserService.get_user(db, user_id)
        if user.is_frozen == frozen:
            return user

        user.is_frozen = frozen
        user.frozen_at = utc_now() if frozen else None
        repo.update(user)

        action = (
            db_models.AuditAction.USER_FREEZE
            if frozen
            else db_models.AuditAction.USER_UNFREEZE
        )
        AuditService.record(
            db,
            admin,
            action,
            db_models.AuditCategory.USERS,
            f"{'Froze' if frozen else 'Unfroze'} user '{user.username}'",
            resource_type="user",
            resource_id=user.id,
            previous_values={"is_frozen": not frozen},
            new_values={"is_frozen": frozen},
            severity=db_models.AuditSeverity.MEDIUM,
            context=context,
        )
        return user

    @staticmethod
    def delete_user(
        db: Session,
        user_id: int,
        admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> None:
        """
        Delete a reporter account.

        Their reports stay, keeping the denormalized reporter contact.
        """
        user = UserService.get_user(db, user_id)
        previous = {
            "username": user.username,
            "email": user.email,
            "name": user.name,
            "report_count": len(user.reports),
        }
        UserRepository(db).delete(user)
        logger.info(f"Reporter {user_id} deleted by admin {admin.id}")

        AuditService.record(
            db,
            admin,
            db_models.AuditAction.USER_DELETE,
            db_models.AuditCategory.USERS,
            f"Deleted user '{previous['username']}'",
            resource_type="user",
            resource_id=user_id,
            previous_values=previous,
            severity=db_models.AuditSeverity.HIGH,
            context=context,
        )
