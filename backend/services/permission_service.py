"""
Permission resolution for admin accounts.

A super admin holds every permission regardless of its stored list. A
regular admin holds exactly its stored permissions, minus the tokens
reserved for super admins. Resolvers are built from the database row on
each request and never cached across requests.
"""

from typing import Iterable, Optional

import models.schemas as schemas
from models.exceptions import InsufficientPermissionsException, ValidationException
from models.permissions import (
    ROLE_DEFAULT_PERMISSIONS,
    SUPER_ADMIN_ONLY,
    AdminRole,
    Permission,
    parse_permissions,
)
from repositories import db_models


class PermissionResolver:
    """Effective capabilities of a single admin."""

    def __init__(
        self,
        role: AdminRole,
        permissions: Optional[Iterable[str]] = None,
        is_active: bool = True,
    ):
        self.role = role
        self.is_active = is_active
        if role == AdminRole.SUPER_ADMIN:
            self._permissions = frozenset(Permission)
        else:
            self._permissions = frozenset(
                parse_permissions(list(permissions or [])) - SUPER_ADMIN_ONLY
            )

    @classmethod
    def for_admin(cls, admin: db_models.Admin) -> "PermissionResolver":
        return cls(admin.role, admin.permissions, admin.is_active)

    @property
    def is_super_admin(self) -> bool:
        return self.is_active and self.role == AdminRole.SUPER_ADMIN

    def has_permission(self, permission: Permission) -> bool:
        """
        Check a single permission token.

        Inactive admins hold nothing.
        """
        return self.is_active and permission in self._permissions

    def has_all(self, permissions: Iterable[Permission]) -> bool:
        return all(self.has_permission(p) for p in permissions)

    def has_any(self, permissions: Iterable[Permission]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def require(self, permission: Permission) -> None:
        """Raise InsufficientPermissionsException unless the permission is held."""
        if not self.has_permission(permission):
            raise InsufficientPermissionsException(permission.value)

    @property
    def can_delete_reports(self) -> bool:
        return self.has_permission(Permission.REPORT_DELETE)

    @property
    def can_delete_users(self) -> bool:
        return self.has_permission(Permission.USER_DELETE)

    @property
    def can_manage_admins(self) -> bool:
        return self.has_any(
            (
                Permission.ADMIN_CREATE,
                Permission.ADMIN_EDIT,
                Permission.ADMIN_DELETE,
                Permission.ADMIN_ROLE_CHANGE,
            )
        )

    @property
    def can_access_settings(self) -> bool:
        return self.has_permission(Permission.SETTINGS_VIEW)

    @property
    def can_view_audit_logs(self) -> bool:
        return self.has_permission(Permission.AUDIT_LOGS_VIEW)

    @property
    def can_override(self) -> bool:
        return self.has_permission(Permission.OVERRIDE)

    def effective_permissions(self) -> list[Permission]:
        """Held permissions in declaration order."""
        if not self.is_active:
            return []
        return [p for p in Permission if p in self._permissions]


class PermissionService:
    """Helpers for assigning permissions to admin accounts."""

    @staticmethod
    def default_permissions(role: AdminRole) -> list[str]:
        """Stored permission list a new admin of this role starts with."""
        defaults = ROLE_DEFAULT_PERMISSIONS[role]
        return [p.value for p in Permission if p in defaults]

    @staticmethod
    def validate_grant(role: AdminRole, permissions: Iterable[Permission]) -> list[str]:
        """
        Check a permission list before storing it on an admin.

        Args:
            role: Role of the admin receiving the permissions
            permissions: Requested tokens

        Returns:
            Deduplicated token values in declaration order

        Raises:
            ValidationException: If a regular admin is given a super-admin-only token
        """
        requested = set(permissions)
        if role != AdminRole.SUPER_ADMIN:
            reserved = sorted(p.value for p in requested & SUPER_ADMIN_ONLY)
            if reserved:
                raise ValidationException(
                    "Permissions reserved for super admins: " + ", ".join(reserved)
                )
        return [p.value for p in Permission if p in requested]

    @staticmethod
    def get_role_info(admin: db_models.Admin) -> schemas.RoleInfo:
        """Capabilities summary of an admin for the dashboard."""
        resolver = PermissionResolver.for_admin(admin)
        return schemas.RoleInfo(
            id=admin.id,
            username=admin.username,
            role=admin.role,
            is_super_admin=resolver.is_super_admin,
            permissions=resolver.effective_permissions(),
            can_delete_reports=resolver.can_delete_reports,
            can_delete_users=resolver.can_delete_users,
            can_manage_admins=resolver.can_manage_admins,
            can_access_settings=resolver.can_access_settings,
            can_view_audit_logs=resolver.can_view_audit_logs,
            can_override=resolver.can_override,
        )
