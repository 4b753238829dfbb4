"""
Report status transitions.

The only code path that writes a report's status or review stamps.

Transition graph:

    pending  -> verified   (report_verify)
    pending  -> rejected   (report_reject)
    verified -> resolved   (report_resolve)

rejected and resolved are terminal. The permission check runs before the
transition check, and both run before anything is written. The write
itself is a conditional UPDATE on the status the caller observed, so of
two concurrent reviewers only the first wins; the second gets
InvalidTransitionException.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
from helpers.request_utils import RequestContext
from helpers.time_utils import utc_now
from models.exceptions import (
    InsufficientPermissionsException,
    InvalidTransitionException,
    ReportNotFoundException,
)
from models.permissions import Permission
from repositories import db_models
from repositories.report_repository import ReportRepository
from services.audit_service import AuditService
from services.content_validation import ContentValidationService
from services.notification_service import NotificationService
from services.permission_service import PermissionResolver

ReportStatus = db_models.ReportStatus

LEGAL_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.VERIFIED, ReportStatus.REJECTED}),
    ReportStatus.VERIFIED: frozenset({ReportStatus.RESOLVED}),
    ReportStatus.REJECTED: frozenset(),
    ReportStatus.RESOLVED: frozenset(),
}

REQUIRED_PERMISSION: dict[ReportStatus, Permission] = {
    ReportStatus.VERIFIED: Permission.REPORT_VERIFY,
    ReportStatus.REJECTED: Permission.REPORT_REJECT,
    ReportStatus.RESOLVED: Permission.REPORT_RESOLVE,
}

TRANSITION_ACTIONS: dict[ReportStatus, db_models.AuditAction] = {
    ReportStatus.VERIFIED: db_models.AuditAction.REPORT_VERIFY,
    ReportStatus.REJECTED: db_models.AuditAction.REPORT_REJECT,
    ReportStatus.RESOLVED: db_models.AuditAction.REPORT_RESOLVE,
}


def is_legal_transition(current: ReportStatus, target: ReportStatus) -> bool:
    """True if `current -> target` is an edge of the transition graph."""
    return target in LEGAL_TRANSITIONS[current]


class ReportStatusService:
    """Gate for report status changes."""

    @staticmethod
    def change_status(
        db: Session,
        report_id: int,
        change: schemas.StatusChange,
        admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.Report:
        """
        Move a report to a new status.

        Args:
            db: Database session
            report_id: Report to change
            change: Target status plus notes (and feedback when resolving)
            admin: Acting admin, freshly loaded for this request
            context: Caller IP and user agent for the audit entry

        Returns:
            The updated report. If it was already in the target status it is
            returned unchanged and nothing is recorded.

        Raises:
            ReportNotFoundException: Unknown report
            InsufficientPermissionsException: Admin lacks the permission for the target
            InvalidTransitionException: Target not reachable from the current
                status, or the status changed concurrently
            ValidationException: Missing or malformed resolution feedback
        """
        repo = ReportRepository(db)
        report = repo.get_by_id(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        target = change.status
        current = report.status

        permission = REQUIRED_PERMISSION.get(target)
        if permission is None:
            raise InvalidTransitionException(report.id, current.value, target.value)

        if not PermissionResolver.for_admin(admin).has_permission(permission):
            AuditService.record_blocked(
                db,
                admin,
                permission,
                TRANSITION_ACTIONS[target],
                db_models.AuditCategory.REPORTS,
                resource_type="report",
                resource_id=report.id,
                context=context,
            )
            raise InsufficientPermissionsException(permission.value)

        if current == target:
            logger.debug(f"Report {report.id} already {target.value}; nothing to do")
            return report

        if not is_legal_transition(current, target):
            raise InvalidTransitionException(report.id, current.value, target.value)

        now = utc_now()
        values: dict = {}
        if change.admin_notes is not None:
            values["admin_notes"] = change.admin_notes.strip() or None

        if target == ReportStatus.VERIFIED:
            values["verified_by_id"] = admin.id
            values["verified_at"] = now
        elif target == ReportStatus.RESOLVED:
            values["admin_feedback"] = ContentValidationService.validate_feedback(
                change.admin_feedback
            )
            values["resolved_by_id"] = admin.id
            values["resolved_at"] = now
            if change.evidence_photo is not None:
                ContentValidationService.validate_attachment(change.evidence_photo)
                values["evidence_photo"] = change.evidence_photo.model_dump()

        if not repo.compare_and_set_status(report.id, current, target, values):
            repo.rollback()
            latest = (
                db.query(db_models.Report.status)
                .filter(db_models.Report.id == report_id)
                .scalar()
            )
            if latest is None:
                raise ReportNotFoundException(report_id)
            logger.warning(
                f"Concurrent status change on report {report_id}: expected "
                f"{current.value}, found {latest.value}"
            )
            raise InvalidTransitionException(report_id, latest.value, target.value)

        repo.commit()
        repo.refresh(report)

        logger.info(
            f"Report {report.id} moved {current.value} -> {target.value} "
            f"by admin {admin.id}"
        )

        AuditService.record(
            db,
            admin,
            TRANSITION_ACTIONS[target],
            db_models.AuditCategory.REPORTS,
            f"Report #{report.id} ({report.type.value}) {current.value} -> {target.value}",
            resource_type="report",
            resource_id=report.id,
            details={
                "report_type": report.type.value,
                "admin_notes": report.admin_notes,
            },
            previous_values={"status": current},
            new_values={"status": target, **values},
            severity=db_models.AuditSeverity.MEDIUM,
            context=context,
        )
        NotificationService.notify_status_change(db, report, current)

        return report
