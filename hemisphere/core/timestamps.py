"""
Timestamp helpers shared by the scheduler, the queue and the batch jobs
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from hemisphere.core.exceptions import NaiveDatetimeError

DAY = timedelta(days=1)
SECONDS_PER_DAY = DAY.total_seconds()


def ensure_aware(value: datetime, name: str = "timestamp") -> datetime:
    """Reject naive datetimes; the core never guesses a timezone"""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise NaiveDatetimeError(f"{name} must be timezone-aware, got {value!r}")
    return value


def format_timestamp(value: datetime) -> str:
    """
    Format as ISO-8601 UTC with millisecond precision, e.g. 2025-01-01T00:00:00.000Z
    """
    utc = ensure_aware(value).astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a persisted timestamp; accepts a trailing 'Z'"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(text))


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end precedes start)"""
    return (ensure_aware(end) - ensure_aware(start)).total_seconds() / SECONDS_PER_DAY
