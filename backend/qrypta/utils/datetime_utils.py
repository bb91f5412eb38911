"""
Datetime utilities
Timezone-aware replacements for datetime.utcnow()
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time

    Returns:
        datetime: Current UTC time with timezone awareness
    """
    return datetime.now(timezone.utc)


def utc_iso_millis(moment: Optional[datetime] = None) -> str:
    """
    Format a moment as ISO-8601 UTC with millisecond precision and a Z suffix

    Example:
        >>> utc_iso_millis(datetime(2025, 12, 10, 10, 0, tzinfo=timezone.utc))
        '2025-12-10T10:00:00.000Z'
    """
    moment = moment or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
