"""Datetime utilities for common operations."""

from datetime import datetime, timedelta, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: datetime) -> datetime:
    """
    Treat naive datetimes as UTC.

    Some backends (SQLite) hand back naive values for timezone-aware
    columns; comparisons need both sides aware.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO 8601, keeping None as None."""
    return ensure_aware(dt).isoformat() if dt else None


def parse_iso(value: str | datetime) -> datetime:
    """
    Parse an ISO 8601 string into an aware datetime.

    Args:
        value: ISO string (a trailing ``Z`` is accepted) or datetime

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the string is not ISO 8601
    """
    if isinstance(value, datetime):
        return ensure_aware(value)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(value))


def add_days(dt: datetime, days: int) -> datetime:
    """
    Add days to a datetime.

    Args:
        dt: Datetime
        days: Number of days to add (can be negative)

    Returns:
        New datetime
    """
    return dt + timedelta(days=days)


def is_older_than(dt: datetime, days: int, reference: Optional[datetime] = None) -> bool:
    """Check whether ``dt`` lies more than ``days`` days before ``reference``."""
    reference = ensure_aware(reference or now())
    return ensure_aware(dt) < add_days(reference, -days)
