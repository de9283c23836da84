"""Clock helpers shared by the engines and services."""

from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def make_clock(tz_name: str = "UTC") -> Clock:
    """
    Build a clock returning the current time in the given IANA timezone.

    Daily and weekly schedules are evaluated in the timezone of the reference
    time, so the clock decides which wall clock "09:00" refers to.

    Args:
        tz_name: IANA timezone name (e.g. "Asia/Taipei")

    Returns:
        Zero-argument callable returning an aware datetime

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the timezone name is unknown
    """
    tz = ZoneInfo(tz_name)

    def _now() -> datetime:
        return datetime.now(tz)

    return _now
