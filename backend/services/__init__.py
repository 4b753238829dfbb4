"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .permission_service import PermissionResolver, PermissionService
from .analytics_service import AnalyticsService
from .audit_service import AuditService
from .content_validation import ContentValidationService
from .notification_service import NotificationService
from .settings_service import SettingsService
from .report_service import ReportService
from .report_status_service import ReportStatusService
from .auth_service import AuthService
from .admin_service import AdminService
from .user_service import UserService

__all__ = [
    "AdminService",
    "AnalyticsService",
    "AuditService",
    "AuthService",
    "ContentValidationService",
    "NotificationService",
    "PermissionResolver",
    "PermissionService",
    "ReportService",
    "ReportStatusService",
    "SettingsService",
    "UserService",
]
