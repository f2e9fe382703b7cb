"""Calendar-day helpers for timezone-aware streak tracking.

Every "what day is this" decision in the streak engine goes through this
module, so the guard, the incremental updater and the rebuild all agree on
where a day starts and ends.

A calendar day is always a ``date`` in the user's IANA timezone. Timestamps
are stored in UTC; naive datetimes are treated as UTC.
"""

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import BASELINE_TIMEZONE

logger = logging.getLogger(__name__)


def is_valid_timezone(name: Optional[str]) -> bool:
    """Check whether ``name`` is a known IANA timezone identifier."""
    if not name or not isinstance(name, str):
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    """Get the ZoneInfo for ``name``, falling back to the baseline timezone.

    Args:
        name: IANA timezone identifier

    Returns:
        ZoneInfo for ``name``, or for the baseline timezone if unknown
    """
    if is_valid_timezone(name):
        return ZoneInfo(name)
    logger.warning("Unknown timezone %r, using %s", name, BASELINE_TIMEZONE)
    return ZoneInfo(BASELINE_TIMEZONE)


def ensure_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def calendar_day(moment: datetime, tz_name: str) -> date:
    """Get the calendar day ``moment`` falls on in timezone ``tz_name``.

    Args:
        moment: Point in time (naive values are UTC)
        tz_name: IANA timezone identifier

    Returns:
        The local calendar date
    """
    return ensure_utc(moment).astimezone(resolve_timezone(tz_name)).date()


def day_bounds_utc(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """Get the UTC half-open interval ``[start, end)`` covering ``day``.

    Args:
        day: Calendar day in timezone ``tz_name``
        tz_name: IANA timezone identifier

    Returns:
        Tuple of (start_utc, end_utc)
    """
    zone = resolve_timezone(tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def today_in_timezone(tz_name: str, now: Optional[datetime] = None) -> date:
    """Get today's calendar day in timezone ``tz_name``."""
    return calendar_day(now or utc_now(), tz_name)


def days_between(earlier: date, later: date) -> int:
    """Number of calendar days from ``earlier`` to ``later``."""
    return (later - earlier).days


def hours_remaining_today(tz_name: str, now: Optional[datetime] = None) -> int:
    """Whole hours left before midnight in timezone ``tz_name``."""
    now = ensure_utc(now or utc_now())
    _, end = day_bounds_utc(calendar_day(now, tz_name), tz_name)
    remaining = (end - now).total_seconds() / 3600
    return max(0, min(24, math.floor(remaining)))


def to_storage(moment: datetime) -> str:
    """Serialize a timestamp for storage.

    Fixed-width UTC ISO format, so lexical order matches chronological order.
    """
    return ensure_utc(moment).isoformat(timespec="microseconds")


def from_storage(value: str) -> datetime:
    """Parse a stored timestamp back into an aware UTC datetime."""
    return ensure_utc(datetime.fromisoformat(value))


def parse_day(value: str) -> date:
    return date.fromisoformat(value)
