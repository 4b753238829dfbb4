"""
Analytics Service - report statistics for the admin dashboard.

Everything is computed from the reports table on each call.
"""

import enum
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

import models.schemas as schemas
from helpers.time_utils import ensure_utc, start_of_utc_day, utc_day_bounds
from models.exceptions import ValidationException
from repositories import db_models
from repositories.report_repository import ReportRepository

ReportStatus = db_models.ReportStatus

MAX_TREND_DAYS = 90


def percentage(part: int, whole: int) -> float:
    """part/whole as a percentage with one decimal; 0 when whole is 0."""
    if not whole:
        return 0.0
    return round(part * 100.0 / whole, 1)


def bucketize(
    counts: dict[Any, int], total: Optional[int] = None
) -> list[schemas.BucketCount]:
    """
    Turn a {value: count} mapping into buckets sorted by count.

    Args:
        counts: Grouped counts (enum members or plain values as keys)
        total: Denominator for percentages (defaults to the sum of counts)

    Returns:
        Buckets ordered by count descending, then key
    """
    if total is None:
        total = sum(counts.values())
    buckets = [
        schemas.BucketCount(
            key=key.value if isinstance(key, enum.Enum) else str(key),
            count=count,
            percentage=percentage(count, total),
        )
        for key, count in counts.items()
    ]
    return sorted(buckets, key=lambda b: (-b.count, b.key))


class AnalyticsService:
    """Service for report analytics."""

    @staticmethod
    def get_statistics(
        db: Session,
        filters: Optional[schemas.ReportFilters] = None,
        days: int = 7,
    ) -> schemas.ReportStatistics:
        """
        Aggregate report statistics.

        Args:
            db: Database session
            filters: Optional criteria applied to every count except the trend
            days: Length of the daily submission trend

        Returns:
            Counts, per-field breakdowns, trend and review rates

        Raises:
            ValidationException: If days is outside 1..90
        """
        if not 1 <= days <= MAX_TREND_DAYS:
            raise ValidationException(f"days must be between 1 and {MAX_TREND_DAYS}")

        repo = ReportRepository(db)
        by_status = repo.count_grouped("status", filters)
        total = sum(by_status.values())
        pending = by_status.get(ReportStatus.PENDING, 0)
        verified = by_status.get(ReportStatus.VERIFIED, 0)
        rejected = by_status.get(ReportStatus.REJECTED, 0)
        resolved = by_status.get(ReportStatus.RESOLVED, 0)

        return schemas.ReportStatistics(
            total=total,
            pending=pending,
            verified=verified,
            rejected=rejected,
            resolved=resolved,
            by_type=bucketize(repo.count_grouped("type", filters), total),
            by_severity=bucketize(repo.count_grouped("severity", filters), total),
            by_priority=bucketize(repo.count_grouped("priority", filters), total),
            by_province=bucketize(repo.count_grouped("province", filters), total),
            by_city=bucketize(repo.count_grouped("city", filters), total),
            daily_trend=AnalyticsService.get_daily_trend(db, days),
            verification_rate=percentage(verified + resolved, total),
            rejection_rate=percentage(rejected, total),
            resolution_rate=percentage(resolved, verified + resolved),
            average_verification_hours=AnalyticsService.get_average_verification_hours(
                db
            ),
        )

    @staticmethod
    def get_daily_trend(db: Session, days: int = 7) -> list[schemas.DailyCount]:
        """Reports submitted per UTC day for the last `days` days, oldest first."""
        today = start_of_utc_day()
        since = today - timedelta(days=days - 1)
        counts = ReportRepository(db).daily_counts(since)
        trend = []
        for offset in range(days):
            day = (since + timedelta(days=offset)).date()
            trend.append(schemas.DailyCount(date=day, count=counts.get(day, 0)))
        return trend

    @staticmethod
    def get_average_verification_hours(db: Session) -> Optional[float]:
        """Mean time from submission to verification, or None if nothing was verified."""
        pairs = ReportRepository(db).get_verification_pairs()
        if not pairs:
            return None
        total_seconds = sum(
            (ensure_utc(verified) - ensure_utc(created)).total_seconds()  # type: ignore[operator]
            for created, verified in pairs
        )
        return round(total_seconds / len(pairs) / 3600, 1)

    @staticmethod
    def get_dashboard_summary(
        db: Session, recent_limit: int = 5
    ) -> schemas.DashboardSummary:
        repo = ReportRepository(db)
        by_status = repo.count_grouped("status")
        start, end = utc_day_bounds()
        return schemas.DashboardSummary(
            total=sum(by_status.values()),
            pending=by_status.get(ReportStatus.PENDING, 0),
            verified=by_status.get(ReportStatus.VERIFIED, 0),
            rejected=by_status.get(ReportStatus.REJECTED, 0),
            resolved=by_status.get(ReportStatus.RESOLVED, 0),
            submitted_today=repo.count_created_between(start, end),
            recent_reports=[
                schemas.Report.model_validate(r) for r in repo.get_recent(recent_limit)
            ],
        )
