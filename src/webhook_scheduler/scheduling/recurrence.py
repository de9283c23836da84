"""Next-trigger calculation for recurring schedules.

All functions here are pure: no I/O, no clock access. Wall-clock policies
(daily/weekly) are evaluated in the timezone carried by the reference time.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, NamedTuple, Optional, Sequence

from ..constants import FALLBACK_INTERVAL_MINUTES
from ..domain.models import (
    DailyPolicy,
    IntervalPolicy,
    RecurrencePolicy,
    ScheduleType,
    WeeklyPolicy,
)

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class NextTrigger(NamedTuple):
    """Computed next trigger time; ``fallback`` is set when the policy was unusable."""

    at: datetime
    fallback: bool = False


def parse_time(value: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Parse an ``HH:mm`` string.

    Args:
        value: Time string such as "09:30"

    Returns:
        (hour, minute) tuple, or None if the value is missing or malformed
    """
    if not isinstance(value, str):
        return None
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def sunday_weekday(value: datetime) -> int:
    """Weekday of ``value`` with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def _add_minutes(value: datetime, minutes: int) -> datetime:
    # Absolute arithmetic: go through UTC so DST transitions don't shift the instant
    if value.tzinfo is None:
        return value + timedelta(minutes=minutes)
    return (value.astimezone(timezone.utc) + timedelta(minutes=minutes)).astimezone(value.tzinfo)


def _at_time(value: datetime, hour: int, minute: int) -> datetime:
    return value.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _fallback(from_time: datetime) -> NextTrigger:
    return NextTrigger(_add_minutes(from_time, FALLBACK_INTERVAL_MINUTES), fallback=True)


def _next_interval(policy: IntervalPolicy, from_time: datetime) -> Optional[datetime]:
    minutes = policy.minutes
    if not isinstance(minutes, int) or isinstance(minutes, bool) or minutes < 1:
        return None
    return _add_minutes(from_time, minutes)


def _next_daily(policy: DailyPolicy, from_time: datetime) -> Optional[datetime]:
    parsed = parse_time(policy.time)
    if parsed is None:
        return None

    candidate = _at_time(from_time, *parsed)
    # Today's slot already passed: move to tomorrow
    if candidate <= from_time:
        candidate = _at_time(from_time + timedelta(days=1), *parsed)
    return candidate


def _next_weekly(policy: WeeklyPolicy, from_time: datetime) -> Optional[datetime]:
    parsed = parse_time(policy.time)
    days = policy.days
    if parsed is None or not days:
        return None
    if any(not isinstance(day, int) or day < 0 or day > 6 for day in days):
        return None

    today = sunday_weekday(from_time)
    today_slot = _at_time(from_time, *parsed)

    best = None
    for day in sorted(set(days)):
        offset = (day - today) % 7
        # Today is listed but its slot has passed: next occurrence is a week away
        if offset == 0 and today_slot <= from_time:
            offset = 7
        if best is None or offset < best:
            best = offset

    return _at_time(from_time + timedelta(days=best), *parsed)


def compute_next_checked(
    policy: Optional[RecurrencePolicy], from_time: datetime
) -> NextTrigger:
    """
    Compute the next trigger time and report whether the fallback was used.

    Unknown or malformed policies never raise; they yield
    ``from_time + 60 minutes`` with ``fallback=True``.

    Args:
        policy: Recurrence policy (may be None for unrecognized stored data)
        from_time: Reference time

    Returns:
        NextTrigger with the computed time and fallback flag
    """
    if isinstance(policy, IntervalPolicy):
        result = _next_interval(policy, from_time)
    elif isinstance(policy, DailyPolicy):
        result = _next_daily(policy, from_time)
    elif isinstance(policy, WeeklyPolicy):
        result = _next_weekly(policy, from_time)
    else:
        result = None

    if result is None:
        return _fallback(from_time)
    return NextTrigger(result)


def compute_next(policy: Optional[RecurrencePolicy], from_time: datetime) -> datetime:
    """Next trigger time for ``policy`` after ``from_time``."""
    return compute_next_checked(policy, from_time).at


def validate_policy(policy: Optional[RecurrencePolicy]) -> Optional[str]:
    """
    Check a policy for user-facing validity.

    Args:
        policy: Policy to validate

    Returns:
        Human-readable error, or None if the policy is valid
    """
    if isinstance(policy, IntervalPolicy):
        minutes = policy.minutes
        if not isinstance(minutes, int) or isinstance(minutes, bool) or minutes < 1:
            return "interval_minutes must be an integer of at least 1"
        return None

    if isinstance(policy, (DailyPolicy, WeeklyPolicy)):
        if parse_time(policy.time) is None:
            return "schedule_time must be a valid HH:mm time"
        if isinstance(policy, WeeklyPolicy):
            if not policy.days:
                return "schedule_days must contain at least one weekday"
            if any(not isinstance(day, int) or day < 0 or day > 6 for day in policy.days):
                return "schedule_days must be weekdays between 0 (Sunday) and 6 (Saturday)"
        return None

    return "unknown schedule type"


# ============================================================================
# Persistence boundary: flat nullable columns <-> tagged union
# ============================================================================

def policy_from_columns(
    schedule_type: Optional[str],
    interval_minutes: Optional[int] = None,
    schedule_time: Optional[str] = None,
    schedule_days: Optional[Sequence[int]] = None,
) -> Optional[RecurrencePolicy]:
    """
    Rebuild a policy from its flattened column values.

    Args:
        schedule_type: "interval", "daily" or "weekly"
        interval_minutes: Interval length (interval policies)
        schedule_time: HH:mm (daily/weekly policies)
        schedule_days: Weekday list (weekly policies)

    Returns:
        The policy, or None if the schedule type is not recognized
    """
    try:
        kind = ScheduleType(schedule_type)
    except ValueError:
        return None

    if kind is ScheduleType.INTERVAL:
        return IntervalPolicy(minutes=interval_minutes)
    if kind is ScheduleType.DAILY:
        return DailyPolicy(time=schedule_time)
    return WeeklyPolicy(time=schedule_time, days=tuple(schedule_days or ()))


def policy_to_columns(policy: Optional[RecurrencePolicy]) -> dict[str, Any]:
    """Flatten a policy into column values; unused columns are None."""
    columns: dict[str, Any] = {
        "schedule_type": None,
        "interval_minutes": None,
        "schedule_time": None,
        "schedule_days": None,
    }
    if isinstance(policy, IntervalPolicy):
        columns.update(schedule_type=policy.kind.value, interval_minutes=policy.minutes)
    elif isinstance(policy, DailyPolicy):
        columns.update(schedule_type=policy.kind.value, schedule_time=policy.time)
    elif isinstance(policy, WeeklyPolicy):
        columns.update(
            schedule_type=policy.kind.value,
            schedule_time=policy.time,
            schedule_days=sorted(set(policy.days)),
        )
    return columns
