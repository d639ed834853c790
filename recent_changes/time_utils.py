"""
Shared datetime helpers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def ensure_utc(dt: datetime) -> datetime:
    """Return a timezone-aware UTC datetime."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp and normalize it to UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_utc(parsed)


def age_in_days(reference: datetime, subject: datetime) -> int:
    """Count the full days elapsed from subject to reference.

    Calendar days are compared in UTC and the last day only counts once it
    is complete, so the result truncates toward zero. A subject later than
    the reference gives a negative age.
    """
    reference = ensure_utc(reference)
    subject = ensure_utc(subject)
    if reference == subject:
        return 0

    sign = 1 if reference > subject else -1
    difference = abs((reference.date() - subject.date()).days)
    shifted = reference - timedelta(days=sign * difference)
    comparison = (shifted > subject) - (shifted < subject)
    last_day_not_full = int(comparison == -sign)
    return sign * (difference - last_day_not_full)
