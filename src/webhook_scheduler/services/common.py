"""Validation shared by the schedule and template services."""

from typing import Any, Optional, Sequence

from ..constants import ERR_CONTENT_TOO_LONG, ERR_NO_SCHEDULE_CONTENT, MAX_CONTENT_LENGTH
from ..domain.models import RecurrencePolicy
from ..scheduling.recurrence import policy_from_columns, policy_to_columns

# Keyword arguments that describe a recurrence policy in flattened form
POLICY_FIELDS = ("schedule_type", "interval_minutes", "schedule_time", "schedule_days")

_UNSET: Any = object()


def merge_policy(
    current: Optional[RecurrencePolicy],
    schedule_type: Any = _UNSET,
    interval_minutes: Any = _UNSET,
    schedule_time: Any = _UNSET,
    schedule_days: Any = _UNSET,
) -> Optional[RecurrencePolicy]:
    """
    Apply flattened policy field changes on top of an existing policy.

    Fields left unset keep their current value, so changing only the time of
    a weekly schedule keeps its days.

    Returns:
        The resulting policy, or None if the schedule type is not recognized
    """
    columns = policy_to_columns(current)
    for key, value in (
        ("schedule_type", schedule_type),
        ("interval_minutes", interval_minutes),
        ("schedule_time", schedule_time),
        ("schedule_days", schedule_days),
    ):
        if value is not _UNSET:
            columns[key] = value
    return policy_from_columns(**columns)


def build_policy(
    schedule_type: Optional[str],
    interval_minutes: Optional[int] = None,
    schedule_time: Optional[str] = None,
    schedule_days: Optional[Sequence[int]] = None,
) -> Optional[RecurrencePolicy]:
    """Policy from flattened fields; None for an unknown schedule type."""
    return policy_from_columns(schedule_type, interval_minutes, schedule_time, schedule_days)


def validate_content_fields(
    message_content: Optional[str],
    embed_data: Optional[dict],
    image_url: Optional[str],
) -> Optional[str]:
    """
    Check that a schedule or template has something to send.

    Returns:
        Human-readable error, or None if the content is acceptable
    """
    if not (message_content and message_content.strip()) and not embed_data and not image_url:
        return ERR_NO_SCHEDULE_CONTENT
    if message_content and len(message_content) > MAX_CONTENT_LENGTH:
        return ERR_CONTENT_TOO_LONG
    return None
