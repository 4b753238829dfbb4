from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from models.permissions import AdminRole, Permission
from repositories.db_models import (
    AuditAction,
    AuditCategory,
    AuditOutcome,
    AuditSeverity,
    NotificationType,
    Priority,
    RepairTime,
    ReportStatus,
    ReportType,
    SettingCategory,
    SettingDataType,
    Severity,
)

# Filter values that mean "no constraint on this field"
NO_FILTER_VALUES = ("", "all")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower() in NO_FILTER_VALUES:
        return None
    return value


# Attachment Schemas
class ImageAttachment(BaseModel):
    """Incoming image descriptor: either a hosted URL or inline base64 data."""

    filename: Optional[str] = Field(default=None, max_length=255)
    original_name: Optional[str] = Field(default=None, max_length=255)
    url: Optional[str] = Field(default=None, max_length=2048)
    data: Optional[str] = None
    mimetype: str
    size: int = Field(default=0, ge=0)


class ReportImage(BaseModel):
    id: int
    position: int
    filename: Optional[str] = None
    original_name: Optional[str] = None
    url: Optional[str] = None
    data: Optional[str] = None
    mimetype: str
    size: int
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Report Schemas
class ReporterInfo(BaseModel):
    name: Optional[str] = Field(default=None, max_length=150)
    username: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=30)


class ReportCreate(BaseModel):
    type: ReportType
    description: str = ""
    address: str
    latitude: float
    longitude: float
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    severity: Severity = Severity.MEDIUM
    images: List[ImageAttachment] = Field(default_factory=list)
    reported_by: Optional[ReporterInfo] = None


class ReportUpdate(BaseModel):
    """Editable report details. Status is changed only through the status endpoints."""

    type: Optional[ReportType] = None
    description: Optional[str] = None
    address: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    severity: Optional[Severity] = None
    priority: Optional[Priority] = None
    affected_lanes: Optional[int] = Field(default=None, ge=0, le=10)
    estimated_repair_time: Optional[RepairTime] = None

    model_config = ConfigDict(extra="forbid")


class StatusChange(BaseModel):
    """
    Requested status transition.

    `admin_feedback` (and optionally `evidence_photo`) are required when
    resolving a report and ignored otherwise.
    """

    status: ReportStatus
    admin_notes: Optional[str] = Field(default=None, max_length=1000)
    admin_feedback: Optional[str] = Field(default=None, max_length=2000)
    evidence_photo: Optional[ImageAttachment] = None


class AdminSummary(BaseModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class Report(BaseModel):
    id: int
    type: ReportType
    description: str
    address: str
    latitude: float
    longitude: float
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    severity: Severity
    status: ReportStatus
    priority: Priority
    affected_lanes: Optional[int] = None
    estimated_repair_time: Optional[RepairTime] = None
    reporter_name: Optional[str] = None
    reporter_username: Optional[str] = None
    reporter_email: Optional[str] = None
    reporter_phone: Optional[str] = None
    submitted_by_id: Optional[int] = None
    admin_notes: Optional[str] = None
    admin_feedback: Optional[str] = None
    evidence_photo: Optional[dict[str, Any]] = None
    verified_by: Optional[AdminSummary] = None
    verified_at: Optional[datetime] = None
    resolved_by: Optional[AdminSummary] = None
    resolved_at: Optional[datetime] = None
    images: List[ReportImage] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportListResponse(BaseModel):
    items: List[Report]
    total: int
    skip: int
    limit: int
    has_more: bool


class MapReport(BaseModel):
    """Compact projection for map markers."""

    id: int
    type: ReportType
    status: ReportStatus
    severity: Severity
    latitude: float
    longitude: float
    address: str
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    description: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MapReportsResponse(BaseModel):
    items: List[MapReport]
    count: int


class ReportFilters(BaseModel):
    """
    Report query criteria.

    Empty strings and "all" are normalized to None (no constraint).
    `status` accepts a comma-separated list.
    """

    status: Optional[List[ReportStatus]] = None
    type: Optional[ReportType] = None
    severity: Optional[Severity] = None
    priority: Optional[Priority] = None
    province: Optional[str] = None
    city: Optional[str] = None
    barangay: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    submitted_by_id: Optional[int] = None

    # Bounding box
    min_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    max_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    min_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    max_lng: Optional[float] = Field(default=None, ge=-180, le=180)

    # Radius search
    near_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    near_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    radius_km: Optional[float] = Field(default=None, gt=0, le=500)

    sort_by: str = "created_at"
    sort_order: str = "desc"

    @field_validator(
        "type",
        "severity",
        "priority",
        "province",
        "city",
        "barangay",
        "search",
        mode="before",
    )
    @classmethod
    def normalize_blank(cls, v: Any) -> Any:
        value = _blank_to_none(v)
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("status", mode="before")
    @classmethod
    def split_statuses(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        if v is None:
            return None
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or None
        return v

    @field_validator("sort_order", mode="before")
    @classmethod
    def normalize_sort_order(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def has_bounding_box(self) -> bool:
        return None not in (self.min_lat, self.max_lat, self.min_lng, self.max_lng)

    @property
    def has_radius(self) -> bool:
        return None not in (self.near_lat, self.near_lng, self.radius_km)


class DailyLimitStatus(BaseModel):
    max_reports: int
    used_today: int
    remaining: int
    can_submit: bool
    resets_at: datetime


# Analytics Schemas
class BucketCount(BaseModel):
    key: str
    count: int
    percentage: float


class DailyCount(BaseModel):
    date: date
    count: int


class ReportStatistics(BaseModel):
    total: int
    pending: int
    verified: int
    rejected: int
    resolved: int
    by_type: List[BucketCount]
    by_severity: List[BucketCount]
    by_priority: List[BucketCount]
    by_province: List[BucketCount]
    by_city: List[BucketCount]
    daily_trend: List[DailyCount]
    verification_rate: float
    rejection_rate: float
    resolution_rate: float
    average_verification_hours: Optional[float] = None


class DashboardSummary(BaseModel):
    total: int
    pending: int
    verified: int
    rejected: int
    resolved: int
    submitted_today: int
    recent_reports: List[Report]


# Admin Schemas
class AdminBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)


class AdminCreate(AdminBase):
    password: str = Field(..., min_length=6)
    role: AdminRole = AdminRole.ADMIN_USER
    permissions: Optional[List[Permission]] = None


class AdminUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    is_active: Optional[bool] = None


class AdminRoleChange(BaseModel):
    role: AdminRole


class AdminPermissionsUpdate(BaseModel):
    permissions: List[Permission]


class Admin(AdminBase):
    id: int
    email: Optional[str] = None
    role: AdminRole
    permissions: List[str]
    is_active: bool
    created_by_id: Optional[int] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminListResponse(BaseModel):
    items: List[Admin]
    total: int
    skip: int
    limit: int


class RoleInfo(BaseModel):
    """Capabilities of the signed-in admin, as consumed by the dashboard."""

    id: int
    username: str
    role: AdminRole
    is_super_admin: bool
    permissions: List[Permission]
    can_delete_reports: bool
    can_delete_users: bool
    can_manage_admins: bool
    can_access_settings: bool
    can_view_audit_logs: bool
    can_override: bool


# Auth Schemas
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AdminToken(Token):
    role_info: RoleInfo


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


# Reporter (User) Schemas
class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=30)
    password: str


class User(BaseModel):
    id: int
    username: str
    email: str
    name: str
    phone: Optional[str] = None
    is_active: bool
    is_frozen: bool
    frozen_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListResponse(BaseModel):
    items: List[User]
    total: int
    skip: int
    limit: int


# Audit Log Schemas
class ActivityLog(BaseModel):
    id: int
    admin_id: int
    admin_username: str
    admin_role: str
    action: AuditAction
    category: AuditCategory
    description: str
    details: Optional[dict[str, Any]] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    previous_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    severity: AuditSeverity
    outcome: AuditOutcome
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityLogListResponse(BaseModel):
    items: List[ActivityLog]
    total: int
    skip: int
    limit: int


class AdminActivityCount(BaseModel):
    admin_id: int
    admin_username: str
    count: int


class AuditLogStatistics(BaseModel):
    by_action: List[BucketCount]
    by_category: List[BucketCount]
    by_admin: List[AdminActivityCount]
    recent_blocked: List[ActivityLog]


class AcceptanceLogEntry(BaseModel):
    """One review decision taken on a report."""

    log_id: int
    report_id: Optional[int] = None
    action: AuditAction
    admin_id: int
    admin_username: str
    admin_role: str
    report_type: Optional[str] = None
    admin_notes: Optional[str] = None
    timestamp: datetime


class AcceptanceLogResponse(BaseModel):
    items: List[AcceptanceLogEntry]
    total: int
    skip: int
    limit: int


# System Settings Schemas
class Setting(BaseModel):
    key: str
    value: Any = None
    category: SettingCategory
    data_type: SettingDataType
    description: str
    is_public: bool
    last_modified_by_id: Optional[int] = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SettingUpdate(BaseModel):
    value: Any


class BulkSettingsUpdate(BaseModel):
    settings: dict[str, Any]


# Notification Schemas
class Notification(BaseModel):
    id: int
    report_id: Optional[int] = None
    type: NotificationType
    title: str
    message: str
    report_status: Optional[ReportStatus] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    items: List[Notification]
    total: int
    unread_count: int
    skip: int
    limit: int


class UnreadCount(BaseModel):
    count: int


class NotificationsMarkedRead(BaseModel):
    updated: int


class MessageResponse(BaseModel):
    message: str
