"""
Closed sets of admin roles and permission tokens.

Permission tokens are persisted as their string values, so renaming a
member is a data migration.
"""

import enum


class AdminRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN_USER = "admin_user"


class Permission(str, enum.Enum):
    # Reports
    REPORT_VIEW = "report_view"
    REPORT_EDIT = "report_edit"
    REPORT_VERIFY = "report_verify"
    REPORT_REJECT = "report_reject"
    REPORT_DELETE = "report_delete"
    REPORT_RESOLVE = "report_resolve"

    # Reporter accounts
    USER_VIEW = "user_view"
    USER_FREEZE = "user_freeze"
    USER_DELETE = "user_delete"

    # Admin accounts
    ADMIN_VIEW = "admin_view"
    ADMIN_CREATE = "admin_create"
    ADMIN_EDIT = "admin_edit"
    ADMIN_DELETE = "admin_delete"
    ADMIN_ROLE_CHANGE = "admin_role_change"

    # System
    SETTINGS_VIEW = "settings_view"
    SETTINGS_UPDATE = "settings_update"
    ANALYTICS_VIEW = "analytics_view"
    AUDIT_LOGS_VIEW = "audit_logs_view"

    # News
    NEWS_CREATE = "news_create"
    NEWS_EDIT = "news_edit"
    NEWS_DELETE = "news_delete"

    OVERRIDE = "override"


# Tokens a regular admin can never hold, even when granted explicitly
SUPER_ADMIN_ONLY: frozenset[Permission] = frozenset(
    {
        Permission.REPORT_DELETE,
        Permission.USER_DELETE,
        Permission.ADMIN_VIEW,
        Permission.ADMIN_CREATE,
        Permission.ADMIN_EDIT,
        Permission.ADMIN_DELETE,
        Permission.ADMIN_ROLE_CHANGE,
        Permission.SETTINGS_VIEW,
        Permission.SETTINGS_UPDATE,
        Permission.AUDIT_LOGS_VIEW,
        Permission.OVERRIDE,
    }
)

ROLE_DEFAULT_PERMISSIONS: dict[AdminRole, frozenset[Permission]] = {
    AdminRole.SUPER_ADMIN: frozenset(Permission),
    AdminRole.ADMIN_USER: frozenset(
        {
            Permission.REPORT_VIEW,
            Permission.REPORT_EDIT,
            Permission.REPORT_VERIFY,
            Permission.REPORT_REJECT,
            Permission.REPORT_RESOLVE,
            Permission.USER_VIEW,
            Permission.ANALYTICS_VIEW,
            Permission.NEWS_CREATE,
            Permission.NEWS_EDIT,
        }
    ),
}


def parse_permissions(values: list[str] | None) -> set[Permission]:
    """
    Convert stored permission strings to Permission members.

    Unknown strings are skipped, so a stale token left in the database
    never grants anything.
    """
    result: set[Permission] = set()
    for value in values or []:
        try:
            result.add(Permission(value))
        except ValueError:
            continue
    return result
