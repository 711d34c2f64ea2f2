"""
Centralized date/time utilities
All timestamps are kept in UTC; calendar dates carry no time component
"""

from datetime import date, datetime, timezone
from typing import Optional


def get_current_datetime() -> datetime:
    """
    Get current datetime in UTC

    Returns:
        Current datetime object with UTC timezone
    """
    return datetime.now(timezone.utc)


def get_current_date() -> date:
    """Get current calendar date in UTC"""
    return get_current_datetime().date()


def to_rfc3339(value: datetime) -> str:
    """
    Format a datetime as an RFC 3339 string in UTC

    Naive datetimes are treated as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp

    Returns:
        Timezone-aware UTC datetime, or None if the value is empty or unparseable
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_date(value: Optional[date]) -> Optional[str]:
    """Format a calendar date as YYYY-MM-DD"""
    return value.isoformat() if value is not None else None


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD date, returning None on empty or invalid input"""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
