"""
Repository pattern implementation for data access layer.
"""

from .activity_log_repository import ActivityLogRepository
from .admin_repository import AdminRepository
from .base import BaseRepository
from .notification_repository import NotificationRepository
from .report_repository import ReportRepository
from .setting_repository import SettingRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityLogRepository",
    "AdminRepository",
    "BaseRepository",
    "NotificationRepository",
    "ReportRepository",
    "SettingRepository",
    "UserRepository",
]
