"""
Time helpers shared by the grant store modules.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional


def get_current_time() -> datetime:
    """Get the current time as a timezone aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are assumed to already be in UTC.

    Args:
        value: Datetime to normalize

    Returns:
        Timezone aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 string, passing None through."""
    if value is None:
        return None
    return ensure_utc(datetime.fromisoformat(value))


def to_milliseconds(ttl: timedelta) -> int:
    """
    Convert a TTL into whole milliseconds.

    Positive TTLs are rounded up so a sub-millisecond lifetime never
    becomes zero.
    """
    return math.ceil(ttl / timedelta(milliseconds=1))
