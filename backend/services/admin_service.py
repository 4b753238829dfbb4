"""
Service for admin account management.

Callers must already hold the relevant admin_* permission; this module
enforces the account rules (unique usernames, no self-demotion, reserved
permissions) and audits every change.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
from authentication.auth import get_password_hash
from helpers.request_utils import RequestContext
from models.exceptions import (
    AdminNotFoundException,
    ConflictException,
    SelfModificationException,
    UsernameTakenException,
)
from models.permissions import AdminRole, Permission, parse_permissions
from repositories import db_models
from repositories.admin_repository import AdminRepository
from repositories.report_repository import ReportRepository
from services.audit_service import AuditService
from services.auth_service import AuthService
from services.permission_service import PermissionService

def _admin_values(admin: db_models.Admin) -> dict:
    return {
        "username": admin.username,
        "email": admin.email,
        "role": admin.role,
        "permissions": list(admin.permissions or []),
        "is_active": admin.is_active,
    }


class AdminService:
    """Service for admin account operations."""

    @staticmethod
    def get_admin(db: Session, admin_id: int) -> db_models.Admin:
        admin = AdminRepository(db).get_by_id(admin_id)
        if not admin:
            raise AdminNotFoundException(admin_id)
        return admin

    @staticmethod
    def list_admins(
        db: Session,
        role: Optional[AdminRole] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> schemas.AdminListResponse:
        items, total = AdminRepository(db).list_admins(role, is_active, skip, limit)
        return schemas.AdminListResponse(
            items=[schemas.Admin.model_validate(a) for a in items],
            total=total,
            skip=skip,
            limit=limit,
        )

    @staticmethod
    def create_admin(
        db: Session,
        admin_data: schemas.AdminCreate,
        created_by: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Admin:
        """
        Create an admin account.

        Without an explicit permission list the role defaults apply.

        Raises:
            UsernameTakenException: Username or email already in use
            ValidationException: Weak password or reserved permissions
        """
        repo = AdminRepository(db)
        if repo.get_by_username(admin_data.username):
            raise UsernameTakenException(
                f"Username '{admin_data.username}' is already taken"
            )
        if admin_data.email and repo.get_by_email(admin_data.email):
            raise UsernameTakenException(
                f"Email '{admin_data.email}' is already registered"
            )
        AuthService.check_new_password(db, admin_data.password)

        if admin_data.permissions is None:
            permissions = PermissionService.default_permissions(admin_data.role)
        else:
            permissions = PermissionService.validate_grant(
                admin_data.role, admin_data.permissions
            )

        admin = db_models.Admin(
            username=admin_data.username,
            email=admin_data.email,
            hashed_password=get_password_hash(admin_data.password),
            role=admin_data.role,
            permissions=permissions,
            is_active=True,
            first_name=admin_data.first_name,
            last_name=admin_data.last_name,
            department=admin_data.department,
            phone=admin_data.phone,
            created_by_id=created_by.id,
        )
        admin = repo.create(admin)
        logger.info(f"Admin {admin.id} ({admin.role.value}) created by {created_by.id}")

        AuditService.record(
            db,
            created_by,
            db_models.AuditAction.ADMIN_CREATE,
            db_models.AuditCategory.ADMINS,
            f"Created {admin.role.value} '{admin.username}'",
            resource_type="admin",
            resource_id=admin.id,
            new_values=_admin_values(admin),
            severity=db_models.AuditSeverity.HIGH,
            context=context,
        )
        return admin

    @staticmethod
    def update_admin(
        db: Session,
        admin_id: int,
        update: schemas.AdminUpdate,
        acting_admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Admin:
        """
        Update profile fields and the active flag.

        Raises:
            AdminNotFoundException: Unknown admin
            SelfModificationException: Deactivating one's own account
            UsernameTakenException: Email already used by another admin
        """
        repo = AdminRepository(db)
        admin = AdminService.get_admin(db, admin_id)
        changes = update.model_dump(exclude_unset=True)

        if changes.get("is_active") is False and admin.id == acting_admin.id:
            raise SelfModificationException("You cannot deactivate your own account")
        if changes.get("email"):
            other = repo.get_by_email(changes["email"])
            if other and other.id != admin.id:
                raise UsernameTakenException(
                    f"Email '{changes['email']}' is already registered"
                )

        changed = {
            field: value
            for field, value in changes.items()
            if getattr(admin, field) != value
        }
        if not changed:
            return admin

        previous = {field: getattr(admin, field) for field in changed}
        for field, value in changed.items():
            setattr(admin, field, value)
        repo.update(admin)

        if "is_active" in changed:
            action = (
                db_models.AuditAction.ADMIN_ACTIVATE
                if admin.is_active
                else db_models.AuditAction.ADMIN_DEACTIVATE
            )
            severity = db_models.AuditSeverity.HIGH
        else:
            action = db_models.AuditAction.ADMIN_EDIT
            severity = db_models.AuditSeverity.LOW

        AuditService.record(
            db,
            acting_admin,
            action,
            db_models.AuditCategory.ADMINS,
            f"Updated admin '{admin.username}': {', '.join(sorted(changed))}",
            resource_type="admin",
            resource_id=admin.id,
            previous_values=previous,
            new_values=changed,
            severity=severity,
            context=context,
        )
        return admin

    @staticmethod
    def change_role(
        db: Session,
        admin_id: int,
        role: AdminRole,
        acting_admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Admin:
        """
        Change an admin's role and reset permissions to the role default.

        Raises:
            AdminNotFoundException: Unknown admin
            SelfModificationException: Changing one's own role
        """
        admin = AdminService.get_admin(db, admin_id)
        if admin.id == acting_admin.id:
            raise SelfModificationException("You cannot change your own role")
        if admin.role == role:
            return admin

        previous = _admin_values(admin)
        admin.role = role
        admin.permissions = PermissionService.default_permissions(role)
        AdminRepository(db).update(admin)
        logger.info(f"Admin {admin.id} role changed to {role.value} by {acting_admin.id}")

        AuditService.record(
            db,
            acting_admin,
            db_models.AuditAction.ADMIN_ROLE_CHANGE,
            db_models.AuditCategory.ADMINS,
            f"Changed role of '{admin.username}' to {role.value}",
            resource_type="admin",
            resource_id=admin.id,
            previous_values={
                "role": previous["role"],
                "permissions": previous["permissions"],
            },
            new_values={"role": admin.role, "permissions": admin.permissions},
            severity=db_models.AuditSeverity.CRITICAL,
            context=context,
        )
        return admin

    @staticmethod
    def set_permissions(
        db: Session,
        admin_id: int,
        permissions: list[Permission],
        acting_admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Admin:
        """
        Replace an admin's explicit permission list.

        Raises:
            AdminNotFoundException: Unknown admin
            ValidationException: Reserved permission granted to a regular admin
        """
        admin = AdminService.get_admin(db, admin_id)
        new_permissions = PermissionService.validate_grant(admin.role, permissions)
        previous = list(admin.permissions or [])
        if sorted(previous) == sorted(new_permissions):
            return admin

        admin.permissions = new_permissions
        AdminRepository(db).update(admin)

        granted = sorted(set(new_permissions) - set(previous))
        revoked = sorted(set(previous) - set(new_permissions))
        AuditService.record(
            db,
            acting_admin,
            db_models.AuditAction.ADMIN_EDIT,
            db_models.AuditCategory.ADMINS,
            f"Updated permissions of '{admin.username}'",
            resource_type="admin",
            resource_id=admin.id,
            details={"granted": granted, "revoked": revoked},
            previous_values={"permissions": previous},
            new_values={"permissions": new_permissions},
            severity=db_models.AuditSeverity.HIGH,
            context=context,
        )
        return admin

    @staticmethod
    def grant_permission(
        db: Session,
        admin_id: int,
        permission: Permission,
        acting_admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Admin:
        admin = AdminService.get_admin(db, admin_id)
        current = parse_permissions(admin.permissions)
        return AdminService.set_permissions(
            db, admin_id, list(current | {permission}), acting_admin, context
        )

    @staticmethod
    def revoke_permission(
        db: Session,
        admin_id: int,
        permission: Permission,
        acting_admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Admin:
        admin = AdminService.get_admin(db, admin_id)
        remaining = parse_permissions(admin.permissions) - {permission}
        return AdminService.set_permissions(
            db, admin_id, list(remaining), acting_admin, context
        )

    @staticmethod
    def delete_admin(
        db: Session,
        admin_id: int,
        acting_admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> None:
        """
        Delete an admin account.

        Admins who verified or resolved reports are kept so those reports
        still point at a real reviewer; deactivate them instead.

        Raises:
            AdminNotFoundException: Unknown admin
            SelfModificationException: Deleting one's own account
            ConflictException: Admin is referenced by reviewed reports
        """
        admin = AdminService.get_admin(db, admin_id)
        if admin.id == acting_admin.id:
            raise SelfModificationException("You cannot delete your own account")

        reviewed = ReportRepository(db).count_reviewed_by_admin(admin.id)
        if reviewed:
            raise ConflictException(
                f"Admin '{admin.username}' reviewed {reviewed} report(s); "
                "deactivate the account instead"
            )

        previous = _admin_values(admin)
        AdminRepository(db).delete(admin)
        logger.info(f"Admin {admin_id} deleted by {acting_admin.id}")

        AuditService.record(
            db,
            acting_admin,
            db_models.AuditAction.ADMIN_DELETE,
            db_models.AuditCategory.ADMINS,
            f"Deleted admin '{previous['username']}'",
            resource_type="admin",
            resource_id=admin_id,
            previous_values=previous,
            severity=db_models.AuditSeverity.CRITICAL,
            context=context,
        )
