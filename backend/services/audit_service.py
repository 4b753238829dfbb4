"""
Audit recorder for state-changing admin actions.

Entries are written after the action they describe has been committed.
A failed audit write is logged and reported to Sentry but never undoes
or fails the action itself.
"""

import enum
from datetime import date, datetime
from typing import Any, Optional

import sentry_sdk
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
from helpers.request_utils import RequestContext
from helpers.time_utils import utc_now
from models.permissions import Permission
from repositories import db_models
from repositories.activity_log_repository import ActivityLogRepository
from services.analytics_service import bucketize


def _jsonable_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable_value(v) for key, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable_value(v) for v in value]
    return value


def _jsonable(values: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Make a dict of column values safe for a JSON column."""
    if values is None:
        return None
    return _jsonable_value(values)


class AuditService:
    """Service for the admin activity log."""

    @staticmethod
    def record(
        db: Session,
        admin: db_models.Admin,
        action: db_models.AuditAction,
        category: db_models.AuditCategory,
        description: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        previous_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
        severity: db_models.AuditSeverity = db_models.AuditSeverity.LOW,
        outcome: db_models.AuditOutcome = db_models.AuditOutcome.SUCCESS,
        context: Optional[RequestContext] = None,
    ) -> Optional[db_models.ActivityLog]:
        """
        Append one activity log entry.

        Args:
            db: Database session
            admin: Acting admin
            action: What was done
            category: Area of the system
            description: Human-readable summary
            resource_type: Kind of target ("report", "admin", "user", "setting")
            resource_id: Target identifier, stored as a string
            details: Free-form extra data
            previous_values: Target fields before the change
            new_values: Target fields after the change
            severity: How sensitive the action is
            outcome: success, failed or blocked
            context: Caller IP and user agent

        Returns:
            The created entry, or None if it could not be written
        """
        context = context or RequestContext()
        entry = db_models.ActivityLog(
            admin_id=admin.id,
            admin_username=admin.username,
            admin_role=admin.role.value,
            action=action,
            category=category,
            description=description,
            details=_jsonable(details),
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            previous_values=_jsonable(previous_values),
            new_values=_jsonable(new_values),
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            severity=severity,
            outcome=outcome,
            timestamp=utc_now(),
        )

        try:
            created = ActivityLogRepository(db).create(entry)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Failed to write activity log entry: {action.value} by admin "
                f"{admin.id} on {resource_type}:{resource_id}: {e}"
            )
            sentry_sdk.set_tag("audit_action", action.value)
            sentry_sdk.capture_exception(e)
            return None

        logger.info(
            f"Audit: {action.value} ({outcome.value}) by {admin.username}",
            extra={
                "admin_id": admin.id,
                "resource_type": resource_type,
                "resource_id": entry.resource_id,
            },
        )
        return created

    @staticmethod
    def record_blocked(
        db: Session,
        admin: db_models.Admin,
        permission: Permission,
        action: db_models.AuditAction,
        category: db_models.AuditCategory,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        context: Optional[RequestContext] = None,
    ) -> Optional[db_models.ActivityLog]:
        """Record an attempt refused for lack of a permission."""
        return AuditService.record(
            db,
            admin,
            action,
            category,
            f"Blocked {action.value}: missing permission {permission.value}",
            resource_type=resource_type,
            resource_id=resource_id,
            details={"required_permission": permission.value},
            severity=db_models.AuditSeverity.MEDIUM,
            outcome=db_models.AuditOutcome.BLOCKED,
            context=context,
        )

    @staticmethod
    def get_logs(
        db: Session,
        admin_id: Optional[int] = None,
        action: Optional[db_models.AuditAction] = None,
        category: Optional[db_models.AuditCategory] = None,
        outcome: Optional[db_models.AuditOutcome] = None,
        severity: Optional[db_models.AuditSeverity] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> schemas.ActivityLogListResponse:
        items, total = ActivityLogRepository(db).get_logs(
            admin_id=admin_id,
            action=action,
            category=category,
            outcome=outcome,
            severity=severity,
            resource_type=resource_type,
            resource_id=resource_id,
            start_date=start_date,
            end_date=end_date,
            search=search,
            skip=skip,
            limit=limit,
        )
        return schemas.ActivityLogListResponse(
            items=[schemas.ActivityLog.model_validate(item) for item in items],
            total=total,
            skip=skip,
            limit=limit,
        )

    @staticmethod
    def get_resource_history(
        db: Session, resource_type: str, resource_id: Any
    ) -> list[schemas.ActivityLog]:
        entries = ActivityLogRepository(db).get_for_resource(
            resource_type, str(resource_id)
        )
        return [schemas.ActivityLog.model_validate(e) for e in entries]

    @staticmethod
    def get_statistics(
        db: Session, since: Optional[datetime] = None
    ) -> schemas.AuditLogStatistics:
        """
        Aggregate activity for the audit dashboard.

        Args:
            db: Database session
            since: Only count entries at or after this time

        Returns:
            Counts by action and category, top admins and recent blocked attempts
        """
        repo = ActivityLogRepository(db)
        by_action = repo.count_by_action(since)
        by_category = repo.count_by_category(since)
        top_admins = repo.most_active_admins(since, limit=10)
        blocked = repo.get_recent_blocked(limit=10)

        return schemas.AuditLogStatistics(
            by_action=bucketize(by_action),
            by_category=bucketize(by_category),
            by_admin=[
                schemas.AdminActivityCount(
                    admin_id=admin_id, admin_username=username, count=count
                )
                for admin_id, username, count in top_admins
            ],
            recent_blocked=[schemas.ActivityLog.model_validate(b) for b in blocked],
        )

    @staticmethod
    def get_acceptance_log(
        db: Session,
        admin_id: Optional[int] = None,
        action: Optional[db_models.AuditAction] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> schemas.AcceptanceLogResponse:
        """
        Review decisions (verify, reject, resolve) taken on reports.

        Deleted reports still appear; their type comes from the entry itself.
        """
        entries, total = ActivityLogRepository(db).get_review_decisions(
            admin_id=admin_id,
            action=action,
            start_date=start_date,
            end_date=end_date,
            skip=skip,
            limit=limit,
        )

        items = []
        for entry in entries:
            details = entry.details or {}
            report_id = int(entry.resource_id) if entry.resource_id else None
            items.append(
                schemas.AcceptanceLogEntry(
                    log_id=entry.id,
                    report_id=report_id,
                    action=entry.action,
                    admin_id=entry.admin_id,
                    admin_username=entry.admin_username,
                    admin_role=entry.admin_role,
                    report_type=details.get("report_type"),
                    admin_notes=details.get("admin_notes"),
                    timestamp=entry.timestamp,
                )
            )

        return schemas.AcceptanceLogResponse(
            items=items, total=total, skip=skip, limit=limit
        )
