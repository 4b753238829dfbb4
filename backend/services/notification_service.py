"""
Notification Service

In-app messages telling reporters what happened to their reports. Messages
are written after the report change they describe has been committed; a
failed write is logged and reported to Sentry, never raised.
"""

from typing import Optional

import sentry_sdk
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.time_utils import utc_now
from models.exceptions import NotificationNotFoundException
from repositories.notification_repository import NotificationRepository

ReportStatus = db_models.ReportStatus
NotificationType = db_models.NotificationType

STATUS_NOTIFICATION_TYPES: dict[ReportStatus, NotificationType] = {
    ReportStatus.VERIFIED: NotificationType.REPORT_VERIFIED,
    ReportStatus.REJECTED: NotificationType.REPORT_REJECTED,
    ReportStatus.RESOLVED: NotificationType.REPORT_RESOLVED,
}


def status_message(
    report_type: db_models.ReportType,
    status: ReportStatus,
    admin_notes: Optional[str] = None,
) -> tuple[str, str]:
    """Title and body for a status change on a report of this type."""
    kind = report_type.value
    label = kind.capitalize()

    if status == ReportStatus.VERIFIED:
        return (
            f"Report Approved: {label}",
            f"Your {kind} report has been verified and is now visible to the "
            "community. Thank you for helping improve our roads!",
        )
    if status == ReportStatus.REJECTED:
        notes = f" Admin notes: {admin_notes}" if admin_notes else ""
        return (
            f"Report Update: {label}",
            f"Your {kind} report could not be verified.{notes} You can submit "
            "a new report if the hazard is still there.",
        )
    if status == ReportStatus.RESOLVED:
        return (
            f"Issue Resolved: {label}",
            f"The {kind} you reported has been resolved. Thank you for your "
            "contribution to road safety!",
        )
    return (
        f"Report Status Update: {label}",
        f"Your {kind} report status is now {status.value}.",
    )


class NotificationService:
    """Service for reporter notifications."""

    @staticmethod
    def _deliver(
        db: Session, notification: db_models.Notification
    ) -> Optional[db_models.Notification]:
        try:
            created = NotificationRepository(db).create(notification)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Failed to write {notification.type.value} notification for "
                f"user {notification.user_id} on report {notification.report_id}: {e}"
            )
            sentry_sdk.set_tag("notification_type", notification.type.value)
            sentry_sdk.capture_exception(e)
            return None

        logger.debug(
            f"Notification {created.id} ({created.type.value}) for user {created.user_id}"
        )
        return created

    @staticmethod
    def notify_report_submitted(
        db: Session, report: db_models.Report
    ) -> Optional[db_models.Notification]:
        """Confirm a submission to its signed-in reporter. Anonymous reports get nothing."""
        if report.submitted_by_id is None:
            return None

        kind = report.type.value
        return NotificationService._deliver(
            db,
            db_models.Notification(
                user_id=report.submitted_by_id,
                report_id=report.id,
                type=NotificationType.REPORT_SUBMITTED,
                title=f"Report Received: {kind.capitalize()}",
                message=(
                    f"Your {kind} report is now being reviewed by our team. "
                    "We'll let you know once it has been processed."
                ),
                report_status=report.status,
            ),
        )

    @staticmethod
    def notify_status_change(
        db: Session, report: db_models.Report, previous: ReportStatus
    ) -> Optional[db_models.Notification]:
        """
        Tell the reporter their report moved to a new status.

        Args:
            db: Database session
            report: Report after the change
            previous: Status before the change

        Returns:
            The notification, or None when the report has no reporter
            account, the status did not change, or the write failed
        """
        if report.submitted_by_id is None or report.status == previous:
            return None

        title, message = status_message(report.type, report.status, report.admin_notes)
        return NotificationService._deliver(
            db,
            db_models.Notification(
                user_id=report.submitted_by_id,
                report_id=report.id,
                type=STATUS_NOTIFICATION_TYPES.get(
                    report.status, NotificationType.REPORT_SUBMITTED
                ),
                title=title[:100],
                message=message[:500],
                report_status=report.status,
            ),
        )

    @staticmethod
    def list_notifications(
        db: Session,
        user: db_models.User,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> schemas.NotificationListResponse:
        repo = NotificationRepository(db)
        items, total = repo.list_for_user(user.id, unread_only, skip, limit)
        return schemas.NotificationListResponse(
            items=[schemas.Notification.model_validate(n) for n in items],
            total=total,
            unread_count=repo.count_unread(user.id),
            skip=skip,
            limit=limit,
        )

    @staticmethod
    def get_unread_count(db: Session, user: db_models.User) -> int:
        return NotificationRepository(db).count_unread(user.id)

    @staticmethod
    def mark_read(
        db: Session, notification_id: int, user: db_models.User
    ) -> db_models.Notification:
        """
        Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundException: Unknown id, or another user's notification
        """
        repo = NotificationRepository(db)
        notification = repo.get_for_user(notification_id, user.id)
        if not notification:
            raise NotificationNotFoundException(notification_id)

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            repo.update(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user: db_models.User) -> int:
        updated = NotificationRepository(db).mark_all_read(user.id, utc_now())
        logger.debug(f"Marked {updated} notifications read for user {user.id}")
        return updated

    @staticmethod
    def delete_notification(
        db: Session, notification_id: int, user: db_models.User
    ) -> None:
        repo = NotificationRepository(db)
        notification = repo.get_for_user(notification_id, user.id)
        if not notification:
            raise NotificationNotFoundException(notification_id)
        repo.delete(notification)
