"""
Service for report submission, editing, deletion and queries.

Status changes live in report_status_service; nothing here writes the
status or review stamps of a report.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
from helpers.geo import validate_coordinates
from helpers.request_utils import RequestContext
from helpers.time_utils import ensure_utc, utc_day_bounds
from models.config import settings
from models.exceptions import (
    CannotDeleteReportException,
    DailyReportLimitExceededException,
    InactiveAccountException,
    ReportNotFoundException,
    ValidationException,
)
from repositories import db_models
from repositories.report_repository import SORT_COLUMNS, ReportRepository
from services.audit_service import AuditService
from services.content_validation import ContentValidationService
from services.notification_service import NotificationService
from services.settings_service import SettingsService

# Columns captured in the audit entry when a report is edited or deleted
AUDITED_FIELDS = (
    "type",
    "description",
    "address",
    "latitude",
    "longitude",
    "province",
    "city",
    "barangay",
    "severity",
    "status",
    "priority",
    "affected_lanes",
    "estimated_repair_time",
    "reporter_name",
    "submitted_by_id",
)


def _snapshot(report: db_models.Report, fields=AUDITED_FIELDS) -> dict:
    return {field: getattr(report, field) for field in fields}


class ReportService:
    """Service for report operations."""

    @staticmethod
    def get_report(db: Session, report_id: int) -> db_models.Report:
        """
        Get a report by ID.

        Raises:
            ReportNotFoundException: If the report does not exist
        """
        report = ReportRepository(db).get_with_images(report_id)
        if not report:
            raise ReportNotFoundException(report_id)
        return report

    @staticmethod
    def get_daily_limit_status(db: Session, user_id: int) -> schemas.DailyLimitStatus:
        """How many reports a reporter has left for the current UTC day."""
        max_reports = int(SettingsService.get_value(db, "max_reports_per_day"))
        start, end = utc_day_bounds()
        used = ReportRepository(db).count_created_between(
            start, end, submitted_by_id=user_id
        )
        remaining = max(0, max_reports - used)
        return schemas.DailyLimitStatus(
            max_reports=max_reports,
            used_today=used,
            remaining=remaining,
            can_submit=remaining > 0,
            resets_at=end,
        )

    @staticmethod
    def create_report(
        db: Session,
        report_data: schemas.ReportCreate,
        user: Optional[db_models.User] = None,
    ) -> db_models.Report:
        """
        Submit a new report in pending status.

        Args:
            db: Database session
            report_data: Submitted report
            user: Signed-in reporter, or None for an anonymous submission

        Returns:
            Created report

        Raises:
            ValidationException: Bad coordinates, address, description,
                location parts or images
            InactiveAccountException: Reporter account is frozen
            DailyReportLimitExceededException: Reporter hit today's quota
        """
        validate_coordinates(report_data.latitude, report_data.longitude)
        address = ContentValidationService.validate_address(report_data.address)
        description = ContentValidationService.validate_description(
            report_data.description
        )
        province = ContentValidationService.validate_required_text(
            report_data.province, "Province"
        )
        city = ContentValidationService.validate_required_text(report_data.city, "City")
        barangay = ContentValidationService.validate_required_text(
            report_data.barangay, "Barangay"
        )

        require_image = bool(SettingsService.get_value(db, "require_image"))
        attachments = ContentValidationService.validate_attachments(
            report_data.images, require_one=require_image
        )

        reporter = report_data.reported_by or schemas.ReporterInfo()
        if user is not None:
            if user.is_frozen or not user.is_active:
                raise InactiveAccountException("Your account is frozen")
            limit = ReportService.get_daily_limit_status(db, user.id)
            if not limit.can_submit:
                raise DailyReportLimitExceededException(limit.max_reports)
            reporter = schemas.ReporterInfo(
                name=user.name,
                username=user.username,
                email=user.email,
                phone=user.phone,
            )

        report = db_models.Report(
            type=report_data.type,
            description=description,
            address=address,
            latitude=report_data.latitude,
            longitude=report_data.longitude,
            province=province,
            city=city,
            barangay=barangay,
            severity=report_data.severity,
            status=db_models.ReportStatus.PENDING,
            reporter_name=reporter.name,
            reporter_username=reporter.username,
            reporter_email=reporter.email,
            reporter_phone=reporter.phone,
            submitted_by_id=user.id if user else None,
        )
        for position, attachment in enumerate(attachments):
            report.images.append(
                db_models.ReportImage(
                    position=position,
                    filename=attachment.filename,
                    original_name=attachment.original_name,
                    url=attachment.url,
                    data=attachment.data,
                    mimetype=attachment.mimetype.lower(),
                    size=attachment.size,
                )
            )

        created = ReportRepository(db).create(report)
        logger.info(
            f"Report {created.id} submitted ({created.type.value}, "
            f"{created.city}, user={created.submitted_by_id})"
        )
        NotificationService.notify_report_submitted(db, created)
        return created

    @staticmethod
    def update_report_details(
        db: Session,
        report_id: int,
        update: schemas.ReportUpdate,
        admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Report:
        """
        Edit the descriptive fields of a report.

        Status is not editable here.

        Raises:
            ReportNotFoundException: Unknown report
            ValidationException: Invalid field values
        """
        repo = ReportRepository(db)
        report = repo.get_by_id(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        changes = update.model_dump(exclude_unset=True)
        if not changes:
            return report

        if "address" in changes:
            changes["address"] = ContentValidationService.validate_address(
                changes["address"]
            )
        if "description" in changes:
            changes["description"] = ContentValidationService.validate_description(
                changes["description"]
            )
        for field, label in (
            ("province", "Province"),
            ("city", "City"),
            ("barangay", "Barangay"),
        ):
            if field in changes:
                changes[field] = ContentValidationService.validate_required_text(
                    changes[field], label
                )
        for field in ("type", "severity", "priority"):
            if field in changes and changes[field] is None:
                raise ValidationException(f"{field} cannot be empty")

        changed = {
            field: value
            for field, value in changes.items()
            if getattr(report, field) != value
        }
        if not changed:
            return report

        previous = _snapshot(report, tuple(changed))
        for field, value in changed.items():
            setattr(report, field, value)
        repo.update(report)

        AuditService.record(
            db,
            admin,
            db_models.AuditAction.REPORT_EDIT,
            db_models.AuditCategory.REPORTS,
            f"Edited report #{report.id}: {', '.join(sorted(changed))}",
            resource_type="report",
            resource_id=report.id,
            previous_values=previous,
            new_values=changed,
            context=context,
        )
        return report

    @staticmethod
    def delete_report(
        db: Session,
        report_id: int,
        admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> None:
        """
        Permanently delete a report and its images.

        The audit entry keeps the deleted report's values.

        Raises:
            ReportNotFoundException: Unknown report
        """
        repo = ReportRepository(db)
        report = repo.get_by_id(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        previous = _snapshot(report)
        previous["image_count"] = len(report.images)
        repo.delete(report)
        logger.info(f"Report {report_id} deleted by admin {admin.id}")

        AuditService.record(
            db,
            admin,
            db_models.AuditAction.REPORT_DELETE,
            db_models.AuditCategory.REPORTS,
            f"Deleted report #{report_id} ({previous['type'].value})",
            resource_type="report",
            resource_id=report_id,
            details={"report_type": previous["type"].value},
            previous_values=previous,
            severity=db_models.AuditSeverity.HIGH,
            context=context,
        )

    @staticmethod
    def list_my_reports(
        db: Session, user: db_models.User, skip: int = 0, limit: int = 20
    ) -> schemas.ReportListResponse:
        items, total = ReportRepository(db).get_by_submitter(user.id, skip, limit)
        return schemas.ReportListResponse(
            items=[schemas.Report.model_validate(r) for r in items],
            total=total,
            skip=skip,
            limit=limit,
            has_more=skip + len(items) < total,
        )

    @staticmethod
    def delete_my_report(db: Session, report_id: int, user: db_models.User) -> None:
        """
        Let a reporter withdraw their own report while it is still pending.

        Raises:
            ReportNotFoundException: Unknown report
            CannotDeleteReportException: Not the owner, or already reviewed
        """
        repo = ReportRepository(db)
        report = repo.get_by_id(report_id)
        if not report:
            raise ReportNotFoundException(report_id)
        if report.submitted_by_id != user.id:
            raise CannotDeleteReportException("You can only delete your own reports")
        if report.status != db_models.ReportStatus.PENDING:
            raise CannotDeleteReportException(
                "Only pending reports can be deleted"
            )
        repo.delete(report)
        logger.info(f"Report {report_id} withdrawn by user {user.id}")

    @staticmethod
    def search_reports(
        db: Session, filters: schemas.ReportFilters, skip: int = 0, limit: int = 20
    ) -> schemas.ReportListResponse:
        """
        Filtered, sorted, paginated report list.

        Raises:
            ValidationException: Unknown sort key or order, or an inverted range
        """
        ReportService._check_filters(filters)
        items, total = ReportRepository(db).search(filters, skip, limit)
        return schemas.ReportListResponse(
            items=[schemas.Report.model_validate(r) for r in items],
            total=total,
            skip=skip,
            limit=limit,
            has_more=skip + len(items) < total,
        )

    @staticmethod
    def get_map_reports(
        db: Session, filters: schemas.ReportFilters
    ) -> schemas.MapReportsResponse:
        ReportService._check_filters(filters)
        reports = ReportRepository(db).get_for_map(filters, settings.MAP_MAX_RESULTS)
        return schemas.MapReportsResponse(
            items=[schemas.MapReport.model_validate(r) for r in reports],
            count=len(reports),
        )

    @staticmethod
    def _check_filters(filters: schemas.ReportFilters) -> None:
        if filters.sort_by not in SORT_COLUMNS:
            raise ValidationException(
                f"sort_by must be one of: {', '.join(sorted(SORT_COLUMNS))}"
            )
        if filters.sort_order not in ("asc", "desc"):
            raise ValidationException("sort_order must be 'asc' or 'desc'")
        if filters.start_date and filters.end_date:
            if ensure_utc(filters.start_date) > ensure_utc(filters.end_date):  # type: ignore[operator]
                raise ValidationException("start_date must be before end_date")
        if filters.has_bounding_box and filters.min_lat > filters.max_lat:  # type: ignore[operator]
            raise ValidationException("min_lat must not exceed max_lat")
