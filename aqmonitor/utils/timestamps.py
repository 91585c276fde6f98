"""Timestamp utilities for UTC handling.

All timestamps inside the package are timezone-aware UTC datetimes. These
helpers cover the conversions needed at the edges:
- Getting current UTC time (the default clock)
- Normalizing naive or foreign-zone datetimes to UTC
- Storage format used by the user directory (ISO 8601 with 'Z')
- Human-readable format used in notification bodies
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None

    Example:
        >>> naive = datetime(2026, 10, 19, 12, 0, 0)
        >>> ensure_utc(naive).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for storage in the user directory.

    Args:
        dt: Datetime to format (None passes through)

    Returns:
        ISO 8601 string with microseconds and 'Z' suffix, or None

    Example:
        >>> format_timestamp(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))
        '2026-10-19T12:00:00.000000Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.strftime(STORAGE_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 timestamp back into a UTC datetime.

    Accepts values with or without microseconds and with either a 'Z'
    suffix or an explicit offset.

    Args:
        value: Stored timestamp string (None or empty yields None)

    Returns:
        Timezone-aware datetime in UTC, or None

    Raises:
        ValueError: If the string is not a recognizable ISO 8601 timestamp
    """
    if value is None or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    return ensure_utc(datetime.fromisoformat(cleaned))


def format_for_display(dt: datetime) -> str:
    """Format a datetime for inclusion in a message body.

    Example:
        >>> format_for_display(datetime(2026, 10, 19, 14, 3, 9, tzinfo=timezone.utc))
        '2026-10-19 14:03:09 UTC'
    """
    return ensure_utc(dt).strftime("%Y-%m-%d %H:%M:%S UTC")


def milliseconds(value: int) -> timedelta:
    """Build a timedelta from a whole number of milliseconds."""
    return timedelta(milliseconds=value)
