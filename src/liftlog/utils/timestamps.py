"""Timestamp helpers.

All timestamps handled by liftlog are timezone-aware UTC datetimes and are
serialized as ISO-8601 strings.
"""

from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime.

    Accepts the trailing "Z" produced by JavaScript's toISOString(). Naive
    values are assumed to already be UTC.

    Raises:
        ValueError: if the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Cannot parse timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime as ISO-8601 in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
