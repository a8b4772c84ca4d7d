"""
onboarding/utils/time_utils.py

Purpose: Time helpers

- UTC "now" as a timezone-aware datetime or ISO-8601 string
- Parsing of stored ISO timestamps
- Elapsed-time checks for reminders
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Returns the current time as a timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """
    Returns the current UTC time as an ISO-8601 string with millisecond precision.
    """
    return utc_now().isoformat(timespec="milliseconds")


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parses a stored timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (including a trailing "Z") and datetime objects.
    Naive values are assumed to be UTC. Returns None when the value is empty
    or cannot be parsed.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def has_elapsed(since, duration: timedelta, now: Optional[datetime] = None) -> bool:
    """
    Checks whether at least `duration` has passed since `since`.

    Unparseable or missing timestamps never count as elapsed.
    """
    started = parse_timestamp(since)
    if started is None:
        return False

    current = now or utc_now()
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current - started >= duration
