"""
Tests for UTC helpers.
"""

from datetime import date, datetime, timedelta, timezone

from helpers.time_utils import (
    ensure_utc,
    format_iso8601,
    start_of_utc_day,
    utc_day_bounds,
    utc_now,
)

MANILA = timezone(timedelta(hours=8))


class TestEnsureUtc:
    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_is_treated_as_utc(self):
        """SQLite hands back naive values."""
        result = ensure_utc(datetime(2026, 3, 1, 9, 30))
        assert result == datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        result = ensure_utc(datetime(2026, 3, 1, 8, 0, tzinfo=MANILA))
        assert result == datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc


class TestDayBounds:
    def test_start_of_day_from_date(self):
        assert start_of_utc_day(date(2026, 7, 4)) == datetime(
            2026, 7, 4, tzinfo=timezone.utc
        )

    def test_manila_morning_belongs_to_previous_utc_day(self):
        # 07:00 in Manila is 23:00 UTC the day before
        moment = datetime(2026, 7, 4, 7, 0, tzinfo=MANILA)
        assert start_of_utc_day(moment) == datetime(2026, 7, 3, tzinfo=timezone.utc)

    def test_bounds_span_one_day(self):
        start, end = utc_day_bounds(date(2026, 12, 31))
        assert start == datetime(2026, 12, 31, tzinfo=timezone.utc)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_today_contains_now(self):
        start, end = utc_day_bounds()
        assert start <= utc_now() < end


class TestFormatIso8601:
    def test_utc_datetime(self):
        dt = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)
        assert format_iso8601(dt) == "2024-01-15T10:30:00Z"

    def test_naive_datetime(self):
        dt = datetime(2024, 1, 15, 10, 30, 0)
        assert format_iso8601(dt) == "2024-01-15T10:30:00Z"

    def test_offset_is_normalized(self):
        dt = datetime(2024, 1, 15, 18, 30, 0, tzinfo=MANILA)
        assert format_iso8601(dt) == "2024-01-15T10:30:00Z"
