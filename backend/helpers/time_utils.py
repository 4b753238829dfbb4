"""
UTC helpers.

SQLite hands back naive datetimes; everything in the API is UTC, so naive
values are treated as UTC before any arithmetic or comparison.
"""

from datetime import date, datetime, time, timedelta, timezone


def utc_now() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes and convert aware ones to UTC.

    Args:
        dt: Datetime from the database or a request, or None

    Returns:
        An aware UTC datetime, or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_utc_day(day: date | datetime | None = None) -> datetime:
    """Midnight UTC of the given day (today by default)."""
    if day is None:
        day = utc_now()
    if isinstance(day, datetime):
        day = ensure_utc(day).date()  # type: ignore[union-attr]
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def utc_day_bounds(day: date | datetime | None = None) -> tuple[datetime, datetime]:
    """[start, end) of a UTC calendar day."""
    start = start_of_utc_day(day)
    return start, start + timedelta(days=1)


def format_iso8601(dt: datetime) -> str:
    """
    Format a datetime as ISO 8601 string.

    Args:
        dt: The datetime to format

    Returns:
        ISO 8601 formatted string (e.g., "2024-01-15T10:30:00Z")
    """
    dt = ensure_utc(dt)  # type: ignore[assignment]
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")
