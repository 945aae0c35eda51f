"""Timestamp helpers.

All timestamps are stored as naive UTC datetimes so that SQLite and
PostgreSQL ``TIMESTAMP`` columns compare the same way.
"""
import re
from datetime import datetime, timezone
from typing import Any, Optional

# ChirpStack emits nanosecond precision; datetime keeps microseconds
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_event_time(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 / ISO 8601 event time.

    Returns None when the value is absent, not a string, or unparseable.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return to_naive_utc(parsed)
