"""
Activity log repository.

Entries are append-only: this repository creates and reads, nothing else.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from repositories import db_models
from repositories.base import BaseRepository
from repositories.report_repository import escape_like

REVIEW_ACTIONS = (
    db_models.AuditAction.REPORT_VERIFY,
    db_models.AuditAction.REPORT_REJECT,
    db_models.AuditAction.REPORT_RESOLVE,
)


class ActivityLogRepository(BaseRepository[db_models.ActivityLog]):
    """Repository for admin activity log operations."""

    def __init__(self, db: Session):
        """Initialize repository."""
        super().__init__(db_models.ActivityLog, db)

    def update(self, entity: db_models.ActivityLog) -> db_models.ActivityLog:
        raise NotImplementedError("Activity log entries are immutable")

    def delete(self, entity: db_models.ActivityLog) -> None:
        raise NotImplementedError("Activity log entries are immutable")

    def _build_query(
        self,
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
    ):
        """Build filtered query for activity logs."""
        query = self.db.query(self.model)

        if admin_id is not None:
            query = query.filter(self.model.admin_id == admin_id)
        if action:
            query = query.filter(self.model.action == action)
        if category:
            query = query.filter(self.model.category == category)
        if outcome:
            query = query.filter(self.model.outcome == outcome)
        if severity:
            query = query.filter(self.model.severity == severity)
        if resource_type:
            query = query.filter(self.model.resource_type == resource_type)
        if resource_id:
            query = query.filter(self.model.resource_id == resource_id)
        if start_date:
            query = query.filter(self.model.timestamp >= start_date)
        if end_date:
            query = query.filter(self.model.timestamp <= end_date)
        if search:
            pattern = f"%{escape_like(search)}%"
            query = query.filter(
                or_(
                    self.model.description.ilike(pattern, escape="\\"),
                    self.model.admin_username.ilike(pattern, escape="\\"),
                    self.model.resource_id.ilike(pattern, escape="\\"),
                )
            )

        return query

    def get_logs(
        self,
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
    ) -> tuple[List[db_models.ActivityLog], int]:
        """
        Get activity logs with filters, newest first.

        Args:
            admin_id: Filter by acting admin
            action: Filter by action
            category: Filter by category
            outcome: Filter by outcome
            severity: Filter by severity level
            resource_type: Filter by resource type ("report", "admin", ...)
            resource_id: Filter by resource ID
            start_date: Filter by start date
            end_date: Filter by end date
            search: Substring of description, admin username or resource ID
            skip: Number of records to skip
            limit: Maximum records to return

        Returns:
            Tuple of (page of entries, total matching count)
        """
        query = self._build_query(
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
        )
        total = query.count()
        items = (
            query.order_by(self.model.timestamp.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def get_for_resource(
        self, resource_type: str, resource_id: str
    ) -> List[db_models.ActivityLog]:
        """Full history of one resource, oldest first."""
        return (
            self._build_query(resource_type=resource_type, resource_id=resource_id)
            .order_by(self.model.timestamp.asc(), self.model.id.asc())
            .all()
        )

    def get_review_decisions(
        self,
        admin_id: Optional[int] = None,
        action: Optional[db_models.AuditAction] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[List[db_models.ActivityLog], int]:
        """Successful verify/reject/resolve entries, newest first."""
        query = self._build_query(
            admin_id=admin_id,
            outcome=db_models.AuditOutcome.SUCCESS,
            start_date=start_date,
            end_date=end_date,
        )
        if action in REVIEW_ACTIONS:
            query = query.filter(self.model.action == action)
        else:
            query = query.filter(self.model.action.in_(REVIEW_ACTIONS))
        total = query.count()
        items = (
            query.order_by(self.model.timestamp.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def count_by_action(self, since: Optional[datetime] = None) -> dict:
        query = self.db.query(self.model.action, func.count(self.model.id))
        if since:
            query = query.filter(self.model.timestamp >= since)
        return dict(query.group_by(self.model.action).all())

    def count_by_category(self, since: Optional[datetime] = None) -> dict:
        query = self.db.query(self.model.category, func.count(self.model.id))
        if since:
            query = query.filter(self.model.timestamp >= since)
        return dict(query.group_by(self.model.category).all())

    def most_active_admins(
        self, since: Optional[datetime] = None, limit: int = 10
    ) -> list[tuple[int, str, int]]:
        """(admin_id, admin_username, count) for the busiest admins."""
        total = func.count(self.model.id).label("total")
        query = self.db.query(self.model.admin_id, self.model.admin_username, total)
        if since:
            query = query.filter(self.model.timestamp >= since)
        rows = (
            query.group_by(self.model.admin_id, self.model.admin_username)
            .order_by(total.desc(), self.model.admin_id.asc())
            .limit(limit)
            .all()
        )
        return [(admin_id, username, count) for admin_id, username, count in rows]

    def get_recent_blocked(self, limit: int = 10) -> List[db_models.ActivityLog]:
        return (
            self._build_query(outcome=db_models.AuditOutcome.BLOCKED)
            .order_by(self.model.timestamp.desc(), self.model.id.desc())
            .limit(limit)
            .all()
        )
