"""
Centralized Utilities for Time Handling in ExamDesk.
Goal: store naive UTC in the database, accept and emit ISO-8601.
"""
import re
from datetime import datetime, timezone
from typing import Optional

# fromisoformat before 3.11 only takes 3 or 6 fractional digits.
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime (the storage convention).
    Always use this instead of datetime.utcnow() or datetime.now().
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC already."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_timestamp(value) -> datetime:
    """
    Parse an ISO-8601 timestamp (a trailing 'Z' is accepted) into naive UTC.

    Raises:
        ValueError: if the value is empty or not ISO-8601.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not value or not isinstance(value, str):
        raise ValueError('Timestamp is required')
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    return to_naive_utc(datetime.fromisoformat(text))


def isoformat_utc(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a stored (naive UTC) datetime as ISO-8601 with a 'Z' suffix."""
    if dt is None:
        return None
    return to_naive_utc(dt).isoformat(timespec='milliseconds') + 'Z'
