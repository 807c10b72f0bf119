"""Daily HHMM window matching.

A window ``[start, end)`` is a same-day interval when ``start <= end`` and
wraps past midnight when ``start > end``. ``start == end`` is an empty
window. Times are 4-digit strings ("0130" is 01:30), so they compare
correctly as plain strings once validated.

Nothing here touches the store; callers pass the windows and the clock.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple

from radarhub_core.errors import ValidationFailure


def parse_hhmm(value: str) -> Tuple[int, int]:
    """Return ``(hour, minute)`` for a valid HHMM string."""
    if not isinstance(value, str) or len(value) != 4 or not (value.isascii() and value.isdigit()):
        raise ValidationFailure("time must be 4 digits HHMM", value=value)
    hour, minute = int(value[:2]), int(value[2:])
    if hour > 23 or minute > 59:
        raise ValidationFailure("time out of range", value=value)
    return hour, minute


def validate_hhmm(value: str) -> str:
    parse_hhmm(value)
    return value


def is_within_window(now: str, start: str, end: str) -> bool:
    if start <= end:
        return start <= now < end
    return now >= start or now < end  # overnight


def any_window_contains(windows: Iterable[Tuple[str, str]], now: str) -> bool:
    return any(is_within_window(now, start, end) for start, end in windows)


def operating_zone(offset_hours: int) -> timezone:
    return timezone(timedelta(hours=offset_hours), f"UTC{offset_hours:+d}")


def hhmm_at(moment: datetime, offset_hours: int = 7) -> str:
    """Format ``moment`` as HHMM on the fixed-offset operating clock.

    Naive datetimes are taken as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(operating_zone(offset_hours)).strftime("%H%M")


def current_hhmm(offset_hours: int = 7, now: Optional[datetime] = None) -> str:
    return hhmm_at(now or datetime.now(timezone.utc), offset_hours)


__all__ = [
    "parse_hhmm",
    "validate_hhmm",
    "is_within_window",
    "any_window_contains",
    "operating_zone",
    "hhmm_at",
    "current_hhmm",
]
