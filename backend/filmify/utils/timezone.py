"""
Timezone utilities for Filmify.
Provides consistent UTC datetime handling for purchase expiry and notification timestamps.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.
    Replacement for deprecated datetime.utcnow().
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is UTC and timezone-aware.
    If timezone-naive, assumes it's already UTC and adds UTC timezone.
    If timezone-aware, converts to UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive values come back from SQLite and from `timestamp` columns
        return dt.replace(tzinfo=timezone.utc)
    else:
        return dt.astimezone(timezone.utc)


def format_iso_utc(dt: Optional[datetime]) -> Optional[str]:
    """
    Format datetime as ISO string in UTC.
    Returns None if datetime is None.
    """
    if dt is None:
        return None

    utc_dt = ensure_utc(dt)
    return utc_dt.isoformat()
