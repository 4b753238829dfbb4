"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.
"""

import enum
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.permissions import AdminRole
from repositories.database import Base


class ReportType(str, enum.Enum):
    POTHOLE = "pothole"
    FLOODING = "flooding"
    DEBRIS = "debris"
    CONSTRUCTION = "construction"
    ACCIDENT = "accident"
    EMERGENCY = "emergency"
    CAUTION = "caution"
    INFO = "info"
    SAFE = "safe"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    RESOLVED = "resolved"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RepairTime(str, enum.Enum):
    """Admin estimate of how long the road repair will take."""

    HOURS_1_2 = "1-2 hours"
    HOURS_2_4 = "2-4 hours"
    HOURS_4_8 = "4-8 hours"
    DAYS_1_2 = "1-2 days"
    DAYS_2_7 = "2-7 days"
    WEEKS_1_2 = "1-2 weeks"
    UNKNOWN = "unknown"


# Audit log enums


class AuditAction(str, enum.Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    PASSWORD_CHANGE = "password_change"
    REPORT_EDIT = "report_edit"
    REPORT_VERIFY = "report_verify"
    REPORT_REJECT = "report_reject"
    REPORT_RESOLVE = "report_resolve"
    REPORT_DELETE = "report_delete"
    USER_FREEZE = "user_freeze"
    USER_UNFREEZE = "user_unfreeze"
    USER_DELETE = "user_delete"
    ADMIN_CREATE = "admin_create"
    ADMIN_EDIT = "admin_edit"
    ADMIN_DELETE = "admin_delete"
    ADMIN_ACTIVATE = "admin_activate"
    ADMIN_DEACTIVATE = "admin_deactivate"
    ADMIN_ROLE_CHANGE = "admin_role_change"
    SETTINGS_UPDATE = "settings_update"
    OVERRIDE_ACTION = "override_action"


class AuditCategory(str, enum.Enum):
    AUTH = "auth"
    REPORTS = "reports"
    USERS = "users"
    ADMINS = "admins"
    SETTINGS = "settings"
    OVERRIDE = "override"


class AuditSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AuditOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    BLOCKED = "blocked"


# System settings enums


class SettingCategory(str, enum.Enum):
    GENERAL = "general"
    MAP = "map"
    NOTIFICATIONS = "notifications"
    REPORTS = "reports"
    USERS = "users"
    SECURITY = "security"


class SettingDataType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


# Reporter notification enums


class NotificationType(str, enum.Enum):
    REPORT_SUBMITTED = "report_submitted"
    REPORT_VERIFIED = "report_verified"
    REPORT_REJECTED = "report_rejected"
    REPORT_RESOLVED = "report_resolved"


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    email: Mapped[Optional[str]] = mapped_column(String, unique=True, nullable=True)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[AdminRole] = mapped_column(
        Enum(AdminRole), default=AdminRole.ADMIN_USER, nullable=False
    )
    # Stored as a list of Permission values; see models.permissions
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username


class User(Base):
    """A reporter account from the mobile/user-facing client."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_frozen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    frozen_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    reports: Mapped[List["Report"]] = relationship(
        "Report", back_populates="submitted_by"
    )
    notifications: Mapped[List["Notification"]] = relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class Report(Base):
    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_status_created", "status", "created_at"),
        Index("ix_reports_type_severity", "type", "severity"),
        Index("ix_reports_coordinates", "latitude", "longitude"),
        Index("ix_reports_submitted_created", "submitted_by_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    type: Mapped[ReportType] = mapped_column(Enum(ReportType), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    address: Mapped[str] = mapped_column(String(200), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    province: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    barangay: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    severity: Mapped[Severity] = mapped_column(
        Enum(Severity), default=Severity.MEDIUM, nullable=False
    )
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus), default=ReportStatus.PENDING, nullable=False, index=True
    )
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority), default=Priority.MEDIUM, nullable=False
    )
    affected_lanes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    estimated_repair_time: Mapped[Optional[RepairTime]] = mapped_column(
        Enum(RepairTime), nullable=True
    )

    # Denormalized reporter contact, kept even if the account is deleted
    reporter_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    reporter_username: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    reporter_email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    reporter_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    submitted_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Written only by the status transition service
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verified_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("admins.id"), nullable=True
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("admins.id"), nullable=True
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    admin_feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    evidence_photo: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    images: Mapped[List["ReportImage"]] = relationship(
        "ReportImage",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ReportImage.position",
    )
    submitted_by: Mapped[Optional["User"]] = relationship(
        "User", back_populates="reports"
    )
    verified_by: Mapped[Optional["Admin"]] = relationship(
        "Admin", foreign_keys=[verified_by_id]
    )
    resolved_by: Mapped[Optional["Admin"]] = relationship(
        "Admin", foreign_keys=[resolved_by_id]
    )


class ReportImage(Base):
    """
    Attachment descriptor for a report photo.

    Exactly one of `url` (externally hosted) or `data` (base64 inline) is set.
    """

    __tablename__ = "report_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    report_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    original_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mimetype: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    report: Mapped["Report"] = relationship("Report", back_populates="images")


class ActivityLog(Base):
    """
    Append-only record of a state-changing admin action.

    admin_id and resource_id are plain columns, not foreign keys, so an
    entry keeps pointing at an admin or report after it is deleted.
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_admin_timestamp", "admin_id", "timestamp"),
        Index("ix_activity_action_timestamp", "action", "timestamp"),
        Index("ix_activity_resource", "resource_type", "resource_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    admin_id: Mapped[int] = mapped_column(Integer, nullable=False)
    admin_username: Mapped[str] = mapped_column(String(50), nullable=False)
    admin_role: Mapped[str] = mapped_column(String(20), nullable=False)

    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False)
    category: Mapped[AuditCategory] = mapped_column(
        Enum(AuditCategory), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    resource_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    previous_values: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON, nullable=True
    )
    new_values: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    severity: Mapped[AuditSeverity] = mapped_column(
        Enum(AuditSeverity), default=AuditSeverity.LOW, nullable=False
    )
    outcome: Mapped[AuditOutcome] = mapped_column(
        Enum(AuditOutcome), default=AuditOutcome.SUCCESS, nullable=False, index=True
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, nullable=False, index=True
    )


class SystemSetting(Base):
    __tablename__ = "system_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    category: Mapped[SettingCategory] = mapped_column(
        Enum(SettingCategory), default=SettingCategory.GENERAL, nullable=False, index=True
    )
    data_type: Mapped[SettingDataType] = mapped_column(
        Enum(SettingDataType), default=SettingDataType.STRING, nullable=False
    )
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_modified_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )


class Notification(Base):
    """
    In-app message for a reporter about one of their reports.

    report_id is a plain column so the message outlives a deleted report.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    report_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    report_status: Mapped[Optional[ReportStatus]] = mapped_column(
        Enum(ReportStatus), nullable=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="notifications")
