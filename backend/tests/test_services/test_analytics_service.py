"""Tests for AnalyticsService."""

from datetime import datetime, timedelta, timezone

import pytest

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import ValidationException
from services.analytics_service import AnalyticsService, bucketize, percentage

Status = db_models.ReportStatus


@pytest.fixture
def mixed_reports(report_factory):
    now = datetime.now(timezone.utc)
    return [
        report_factory(
            status=Status.VERIFIED,
            created_at=now - timedelta(hours=6),
            verified_at=now - timedelta(hours=4),
        ),
        report_factory(
            status=Status.RESOLVED,
            type=db_models.ReportType.FLOODING,
            city="Manila",
            created_at=now - timedelta(hours=10),
            verified_at=now - timedelta(hours=6),
        ),
        report_factory(status=Status.REJECTED),
        report_factory(status=Status.PENDING),
    ]


class TestHelpers:
    def test_percentage(self):
        assert percentage(1, 3) == 33.3
        assert percentage(5, 0) == 0.0

    def test_bucketize_sorts_by_count_then_key(self):
        buckets = bucketize(
            {
                db_models.ReportType.DEBRIS: 1,
                db_models.ReportType.POTHOLE: 3,
                db_models.ReportType.ACCIDENT: 1,
            }
        )

        assert [b.key for b in buckets] == ["pothole", "accident", "debris"]
        assert buckets[0].percentage == 60.0


class TestStatistics:
    def test_counts_and_rates(self, db_session, mixed_reports):
        stats = AnalyticsService.get_statistics(db_session)

        assert stats.total == 4
        assert (stats.pending, stats.verified, stats.rejected, stats.resolved) == (
            1,
            1,
            1,
            1,
        )
        assert stats.verification_rate == 50.0
        assert stats.rejection_rate == 25.0
        assert stats.resolution_rate == 50.0
        assert stats.average_verification_hours == 3.0

    def test_breakdowns(self, db_session, mixed_reports):
        stats = AnalyticsService.get_statistics(db_session)

        assert stats.by_type[0].key == "pothole"
        assert stats.by_type[0].count == 3
        assert {b.key: b.count for b in stats.by_city} == {"Makati": 3, "Manila": 1}

    def test_filters_narrow_the_counts(self, db_session, mixed_reports):
        stats = AnalyticsService.get_statistics(
            db_session, schemas.ReportFilters(city="manila")
        )

        assert stats.total == 1
        assert stats.resolved == 1

    def test_empty_database(self, db_session):
        stats = AnalyticsService.get_statistics(db_session)

        assert stats.total == 0
        assert stats.verification_rate == 0.0
        assert stats.average_verification_hours is None

    def test_trend_has_one_entry_per_day(self, db_session, report_factory):
        now = datetime.now(timezone.utc)
        report_factory(created_at=now - timedelta(days=2))
        report_factory()

        trend = AnalyticsService.get_daily_trend(db_session, days=3)

        assert len(trend) == 3
        assert trend[-1].date == now.date()
        assert [d.count for d in trend] == [1, 0, 1]

    @pytest.mark.parametrize("days", [0, 91])
    def test_days_out_of_range(self, db_session, days):
        with pytest.raises(ValidationException):
            AnalyticsService.get_statistics(db_session, days=days)


def test_dashboard_summary(db_session, mixed_reports):
    summary = AnalyticsService.get_dashboard_summary(db_session, recent_limit=2)

    assert summary.total == 4
    assert summary.pending == 1
    assert len(summary.recent_reports) == 2
    assert summary.submitted_today >= 2
