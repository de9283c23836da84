"""Domain records and result types."""

from .models import (
    DailyPolicy,
    DeferredFiringResult,
    DeferredMessage,
    DeferredStatus,
    DeliveryResult,
    DeliveryStatus,
    DueMessage,
    DueSchedule,
    ErrorCode,
    IntervalPolicy,
    MessageLogEntry,
    MessageSource,
    OperationResult,
    RecurrencePolicy,
    RecurringSchedule,
    ScheduleFiringResult,
    ScheduleType,
    Template,
    WebhookTarget,
    WeeklyPolicy,
    new_id,
)

__all__ = [
    "DailyPolicy",
    "DeferredFiringResult",
    "DeferredMessage",
    "DeferredStatus",
    "DeliveryResult",
    "DeliveryStatus",
    "DueMessage",
    "DueSchedule",
    "ErrorCode",
    "IntervalPolicy",
    "MessageLogEntry",
    "MessageSource",
    "OperationResult",
    "RecurrencePolicy",
    "RecurringSchedule",
    "ScheduleFiringResult",
    "ScheduleType",
    "Template",
    "WebhookTarget",
    "WeeklyPolicy",
    "new_id",
]
