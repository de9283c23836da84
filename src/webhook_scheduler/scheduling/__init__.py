"""Recurrence policy evaluation."""

from .recurrence import (
    NextTrigger,
    compute_next,
    compute_next_checked,
    parse_time,
    policy_from_columns,
    policy_to_columns,
    validate_policy,
)

__all__ = [
    "NextTrigger",
    "compute_next",
    "compute_next_checked",
    "parse_time",
    "policy_from_columns",
    "policy_to_columns",
    "validate_policy",
]
