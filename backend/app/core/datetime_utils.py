"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Attempt timing reads the clock only through this function, so tests can
    patch it to move time forward.

    Returns:
        A timezone-aware datetime object representing the current time in UTC.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite returns naive datetimes even for DateTime(timezone=True) columns.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_millis(dt: datetime) -> int:
    """Convert a datetime to integer milliseconds since the Unix epoch."""
    return int(ensure_timezone_aware(dt).timestamp() * 1000)


def from_epoch_seconds(seconds: float) -> datetime:
    """Build an aware UTC datetime from epoch seconds."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
