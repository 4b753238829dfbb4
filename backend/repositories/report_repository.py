"""
Report repository for database operations.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import String, and_, case, cast, func, or_, update
from sqlalchemy.orm import Query, Session, selectinload

import repositories.db_models as db_models
from helpers.geo import bounding_box, haversine_km
from helpers.time_utils import ensure_utc, utc_now

from .base import BaseRepository

if TYPE_CHECKING:
    import models.schemas as schemas


def escape_like(text: str) -> str:
    """
    Escape special LIKE pattern characters for safe use in SQL LIKE queries.

    Args:
        text: The text to escape

    Returns:
        Escaped text safe for use in LIKE patterns
    """
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_Report = db_models.Report

_SEVERITY_RANK = case(
    (_Report.severity == db_models.Severity.LOW, 1),
    (_Report.severity == db_models.Severity.MEDIUM, 2),
    (_Report.severity == db_models.Severity.HIGH, 3),
    else_=0,
)

_PRIORITY_RANK = case(
    (_Report.priority == db_models.Priority.LOW, 1),
    (_Report.priority == db_models.Priority.MEDIUM, 2),
    (_Report.priority == db_models.Priority.HIGH, 3),
    (_Report.priority == db_models.Priority.URGENT, 4),
    else_=0,
)

SORT_COLUMNS: dict[str, Any] = {
    "created_at": _Report.created_at,
    "updated_at": _Report.updated_at,
    "severity": _SEVERITY_RANK,
    "priority": _PRIORITY_RANK,
    "status": _Report.status,
    "type": _Report.type,
}

GROUPABLE_COLUMNS: dict[str, Any] = {
    "status": _Report.status,
    "type": _Report.type,
    "severity": _Report.severity,
    "priority": _Report.priority,
    "province": _Report.province,
    "city": _Report.city,
}


class ReportRepository(BaseRepository[db_models.Report]):
    """Repository for Report entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize report repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Report, db)

    def get_with_images(self, report_id: int) -> Optional[db_models.Report]:
        """Get a report with its images and reviewer accounts loaded."""
        return (
            self.db.query(_Report)
            .options(
                selectinload(_Report.images),
                selectinload(_Report.verified_by),
                selectinload(_Report.resolved_by),
            )
            .filter(_Report.id == report_id)
            .first()
        )

    def get_by_ids(self, report_ids: list[int]) -> dict[int, db_models.Report]:
        """Fetch reports by ID in a single query, keyed by ID."""
        if not report_ids:
            return {}
        reports = self.db.query(_Report).filter(_Report.id.in_(report_ids)).all()
        return {report.id: report for report in reports}

    # Filtering

    def _apply_filters(self, query: Query, filters: "schemas.ReportFilters") -> Query:
        """Add a WHERE clause for every constraint set on the filters."""
        if filters.status:
            query = query.filter(_Report.status.in_(filters.status))
        if filters.type:
            query = query.filter(_Report.type == filters.type)
        if filters.severity:
            query = query.filter(_Report.severity == filters.severity)
        if filters.priority:
            query = query.filter(_Report.priority == filters.priority)
        if filters.province:
            query = query.filter(func.lower(_Report.province) == filters.province.lower())
        if filters.city:
            query = query.filter(func.lower(_Report.city) == filters.city.lower())
        if filters.barangay:
            query = query.filter(func.lower(_Report.barangay) == filters.barangay.lower())
        if filters.submitted_by_id is not None:
            query = query.filter(_Report.submitted_by_id == filters.submitted_by_id)
        if filters.start_date:
            query = query.filter(_Report.created_at >= ensure_utc(filters.start_date))
        if filters.end_date:
            query = query.filter(_Report.created_at <= ensure_utc(filters.end_date))

        if filters.search:
            pattern = f"%{escape_like(filters.search)}%"
            query = query.filter(
                or_(
                    cast(_Report.type, String).ilike(pattern, escape="\\"),
                    _Report.address.ilike(pattern, escape="\\"),
                    _Report.description.ilike(pattern, escape="\\"),
                )
            )

        if filters.has_bounding_box:
            query = self._within_box(
                query,
                filters.min_lat,  # type: ignore[arg-type]
                filters.max_lat,  # type: ignore[arg-type]
                filters.min_lng,  # type: ignore[arg-type]
                filters.max_lng,  # type: ignore[arg-type]
            )

        if filters.has_radius:
            # Coarse box here, exact distance check in _within_radius
            query = self._within_box(
                query,
                *bounding_box(
                    filters.near_lat,  # type: ignore[arg-type]
                    filters.near_lng,  # type: ignore[arg-type]
                    filters.radius_km,  # type: ignore[arg-type]
                ),
            )

        return query

    @staticmethod
    def _within_box(
        query: Query, min_lat: float, max_lat: float, min_lng: float, max_lng: float
    ) -> Query:
        query = query.filter(_Report.latitude.between(min_lat, max_lat))
        if min_lng <= max_lng:
            return query.filter(_Report.longitude.between(min_lng, max_lng))
        # Box crosses the antimeridian
        return query.filter(
            or_(_Report.longitude >= min_lng, _Report.longitude <= max_lng)
        )

    @staticmethod
    def _within_radius(
        reports: List[db_models.Report], filters: "schemas.ReportFilters"
    ) -> List[db_models.Report]:
        return [
            report
            for report in reports
            if haversine_km(
                filters.near_lat,  # type: ignore[arg-type]
                filters.near_lng,  # type: ignore[arg-type]
                report.latitude,
                report.longitude,
            )
            <= filters.radius_km  # type: ignore[operator]
        ]

    @staticmethod
    def _apply_sort(query: Query, sort_by: str, sort_order: str) -> Query:
        column = SORT_COLUMNS.get(sort_by, _Report.created_at)
        if sort_order == "asc":
            return query.order_by(column.asc(), _Report.id.asc())
        return query.order_by(column.desc(), _Report.id.desc())

    def search(
        self, filters: "schemas.ReportFilters", skip: int = 0, limit: int = 20
    ) -> tuple[List[db_models.Report], int]:
        """
        Get a page of reports matching the filters.

        Args:
            filters: Query criteria and sort order
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (page of reports, total matching count)
        """
        query = self._apply_filters(self.db.query(_Report), filters)
        query = self._apply_sort(query, filters.sort_by, filters.sort_order)
        query = query.options(
            selectinload(_Report.images),
            selectinload(_Report.verified_by),
            selectinload(_Report.resolved_by),
        )

        if filters.has_radius:
            matches = self._within_radius(query.all(), filters)
            return matches[skip : skip + limit], len(matches)

        total = query.order_by(None).count()
        return query.offset(skip).limit(limit).all(), total

    def get_for_map(
        self, filters: "schemas.ReportFilters", max_results: int
    ) -> List[db_models.Report]:
        """
        Get the newest reports matching the filters, capped for map display.

        Args:
            filters: Query criteria (sort settings are ignored)
            max_results: Upper bound on returned rows

        Returns:
            Reports ordered newest first
        """
        query = self._apply_filters(self.db.query(_Report), filters)
        query = query.order_by(_Report.created_at.desc(), _Report.id.desc())

        if filters.has_radius:
            return self._within_radius(query.all(), filters)[:max_results]
        return query.limit(max_results).all()

    def get_recent(self, limit: int = 5) -> List[db_models.Report]:
        return (
            self.db.query(_Report)
            .order_by(_Report.created_at.desc(), _Report.id.desc())
            .limit(limit)
            .all()
        )

    def get_by_submitter(
        self, user_id: int, skip: int = 0, limit: int = 20
    ) -> tuple[List[db_models.Report], int]:
        """Get a reporter's own reports, newest first, with the total count."""
        query = self.db.query(_Report).filter(_Report.submitted_by_id == user_id)
        total = query.count()
        items = (
            query.options(selectinload(_Report.images))
            .order_by(_Report.created_at.desc(), _Report.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    # Status transitions

    def compare_and_set_status(
        self,
        report_id: int,
        expected: db_models.ReportStatus,
        target: db_models.ReportStatus,
        values: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Move a report to `target` only if it is still in `expected`.

        Runs as a single conditional UPDATE so two reviewers acting on the
        same report cannot both succeed. Does not commit.

        Args:
            report_id: Report ID
            expected: Status the caller read before deciding
            target: New status
            values: Extra columns to write in the same statement

        Returns:
            True if the row was updated, False if the status had changed
        """
        stmt = (
            update(_Report)
            .where(and_(_Report.id == report_id, _Report.status == expected))
            .values(status=target, updated_at=utc_now(), **(values or {}))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    # Aggregates

    def count_matching(self, filters: "schemas.ReportFilters") -> int:
        return self._apply_filters(self.db.query(_Report), filters).count()

    def count_grouped(
        self, field: str, filters: Optional["schemas.ReportFilters"] = None
    ) -> dict[Any, int]:
        """
        Count reports grouped by one column.

        Args:
            field: One of GROUPABLE_COLUMNS
            filters: Optional criteria applied before grouping

        Returns:
            Mapping of column value to count (NULL values are skipped)
        """
        column = GROUPABLE_COLUMNS[field]
        query = self.db.query(column, func.count(_Report.id))
        if filters is not None:
            query = self._apply_filters(query, filters)
        rows = query.filter(column.isnot(None)).group_by(column).all()
        return {value: count for value, count in rows}

    def count_created_between(
        self, start: datetime, end: datetime, submitted_by_id: Optional[int] = None
    ) -> int:
        """Count reports created in [start, end), optionally for one reporter."""
        query = self.db.query(func.count(_Report.id)).filter(
            _Report.created_at >= start, _Report.created_at < end
        )
        if submitted_by_id is not None:
            query = query.filter(_Report.submitted_by_id == submitted_by_id)
        return query.scalar() or 0

    def daily_counts(self, since: datetime) -> dict[date, int]:
        """Reports created per UTC calendar day since `since`."""
        day = func.date(_Report.created_at)
        rows = (
            self.db.query(day, func.count(_Report.id))
            .filter(_Report.created_at >= since)
            .group_by(day)
            .all()
        )
        counts: dict[date, int] = {}
        for value, count in rows:
            if isinstance(value, str):
                value = date.fromisoformat(value)
            elif isinstance(value, datetime):
                value = value.date()
            counts[value] = count
        return counts

    def get_verification_pairs(self) -> list[tuple[datetime, datetime]]:
        """(created_at, verified_at) for every report that was verified."""
        rows = (
            self.db.query(_Report.created_at, _Report.verified_at)
            .filter(_Report.verified_at.isnot(None))
            .all()
        )
        return [(created, verified) for created, verified in rows]

    def count_reviewed_by_admin(self, admin_id: int) -> int:
        """Count reports whose verification or resolution is attributed to an admin."""
        return (
            self.db.query(func.count(_Report.id))
            .filter(
                or_(
                    _Report.verified_by_id == admin_id,
                    _Report.resolved_by_id == admin_id,
                )
            )
            .scalar()
            or 0
        )
