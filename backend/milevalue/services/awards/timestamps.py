"""Timestamp helpers shared by the fingerprint, dedup and time-bucket code."""

from datetime import date, datetime, time
from typing import Any


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO datetime string (or pass a datetime through). None on failure."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_minute(value: Any) -> str:
    """Minute-precision form of a timestamp: YYYY-MM-DDTHH:MM."""
    parsed = parse_timestamp(value)
    if parsed is not None:
        return parsed.strftime("%Y-%m-%dT%H:%M")
    if isinstance(value, str):
        return value[:16]
    return ""


def to_hhmm(value: Any) -> str:
    """Clock time of a timestamp as HHMM, or "" when unreadable."""
    parsed = parse_timestamp(value)
    if parsed is not None:
        return parsed.strftime("%H%M")
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[1][:5].replace(":", "")
    return ""


def minutes_between(a: Any, b: Any) -> float | None:
    """Absolute difference in minutes, or None when either side is unreadable.

    Mixed naive/aware pairs are compared on wall-clock time.
    """
    first = _parse_moment(a)
    second = _parse_moment(b)
    if first is None or second is None:
        return None
    if (first.tzinfo is None) != (second.tzinfo is None):
        first = first.replace(tzinfo=None)
        second = second.replace(tzinfo=None)
    return abs((first - second).total_seconds()) / 60


def _parse_moment(value: Any) -> datetime | None:
    # Bare clock times ("09:30") compare on a shared date
    parsed = parse_timestamp(value)
    if parsed is not None or not isinstance(value, str):
        return parsed
    try:
        return datetime.combine(date.min, time.fromisoformat(value.strip()))
    except ValueError:
        return None
