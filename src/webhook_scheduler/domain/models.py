"""
Immutable domain records shared by the engines, services and store.

Records are frozen dataclasses; the store hands out fresh copies and all
changes go back through explicit store update operations.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Generic, Optional, Tuple, TypeVar, Union
import uuid


def new_id() -> str:
    """Generate a record identifier."""
    return str(uuid.uuid4())


class ScheduleType(str, Enum):
    """Recurrence policy kinds as stored in the database."""
    INTERVAL = "interval"
    DAILY = "daily"
    WEEKLY = "weekly"


class DeferredStatus(str, Enum):
    """Lifecycle of a one-off deferred message."""
    PENDING = "pending"
    SENT = "sent"  # terminal
    CANCELLED = "cancelled"  # terminal


class DeliveryStatus(str, Enum):
    """Outcome of a delivery attempt."""
    SUCCESS = "success"
    FAILED = "failed"


class MessageSource(str, Enum):
    """What produced a message log entry."""
    MANUAL = "manual"
    SCHEDULE = "schedule"
    DEFERRED = "deferred"


class ErrorCode(str, Enum):
    """Machine-readable reason attached to a rejected operation."""
    VALIDATION = "validation"
    TARGET_NOT_FOUND = "target_not_found"
    TARGET_DISABLED = "target_disabled"
    MESSAGE_NOT_FOUND = "message_not_found"
    NOT_DEFERRED = "not_deferred"
    ALREADY_SENT = "already_sent"
    ALREADY_CANCELLED = "already_cancelled"
    SCHEDULE_NOT_FOUND = "schedule_not_found"
    TEMPLATE_NOT_FOUND = "template_not_found"

    @property
    def is_not_found(self) -> bool:
        return self.value.endswith("_not_found")


# ============================================================================
# Recurrence policies
# ============================================================================

@dataclass(frozen=True)
class IntervalPolicy:
    """Fire every ``minutes`` minutes from the last firing."""

    kind: ClassVar[ScheduleType] = ScheduleType.INTERVAL
    minutes: Optional[int] = None


@dataclass(frozen=True)
class DailyPolicy:
    """Fire once per day at wall-clock ``time`` (HH:mm)."""

    kind: ClassVar[ScheduleType] = ScheduleType.DAILY
    time: Optional[str] = None


@dataclass(frozen=True)
class WeeklyPolicy:
    """Fire on the listed weekdays (0=Sunday .. 6=Saturday) at ``time``."""

    kind: ClassVar[ScheduleType] = ScheduleType.WEEKLY
    time: Optional[str] = None
    days: Tuple[int, ...] = ()


RecurrencePolicy = Union[IntervalPolicy, DailyPolicy, WeeklyPolicy]


# ============================================================================
# Stored records
# ============================================================================

@dataclass(frozen=True)
class WebhookTarget:
    """A Discord webhook URL messages are delivered to."""

    name: str
    url: str
    id: str = field(default_factory=new_id)
    is_active: bool = True
    success_count: int = 0
    fail_count: int = 0
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class RecurringSchedule:
    """A message definition fired repeatedly according to its policy."""

    webhook_id: str
    name: str
    policy: Optional[RecurrencePolicy]
    id: str = field(default_factory=new_id)
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = None
    image_url: Optional[str] = None
    is_active: bool = True
    last_triggered_at: Optional[datetime] = None
    next_trigger_at: Optional[datetime] = None
    success_count: int = 0
    fail_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Template:
    """Reusable message content and policy that can be applied to a target."""

    name: str
    policy: Optional[RecurrencePolicy]
    id: str = field(default_factory=new_id)
    description: Optional[str] = None
    message_content: Optional[str] = None
    embed_data: Optional[dict[str, Any]] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class DeferredMessage:
    """A plain-text message sent exactly once at ``scheduled_for``."""

    webhook_id: str
    content: str
    scheduled_for: datetime
    id: str = field(default_factory=new_id)
    status: DeferredStatus = DeferredStatus.PENDING
    created_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    outcome: Optional[DeliveryStatus] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (DeferredStatus.SENT, DeferredStatus.CANCELLED)


@dataclass(frozen=True)
class MessageLogEntry:
    """Append-only record of one delivery attempt."""

    webhook_id: str
    content: str
    status: DeliveryStatus
    id: str = field(default_factory=new_id)
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    source: MessageSource = MessageSource.MANUAL
    source_id: Optional[str] = None


@dataclass(frozen=True)
class DueSchedule:
    """A due recurring schedule together with its owning target."""

    schedule: RecurringSchedule
    target: WebhookTarget


@dataclass(frozen=True)
class DueMessage:
    """A due deferred message together with its owning target."""

    message: DeferredMessage
    target: WebhookTarget


# ============================================================================
# Results
# ============================================================================

@dataclass(frozen=True)
class DeliveryResult:
    """Classified outcome of one outbound webhook call.

    ``status_code`` is None when no HTTP response was received at all
    (connection error, timeout), which distinguishes transport failures from
    non-2xx responses.
    """

    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_transport_error(self) -> bool:
        return not self.success and self.status_code is None


@dataclass(frozen=True)
class ScheduleFiringResult:
    """Outcome of firing one recurring schedule."""

    schedule_id: str
    schedule_name: str
    success: bool
    error: Optional[str] = None
    status_code: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedule_id": self.schedule_id,
            "schedule_name": self.schedule_name,
            "success": self.success,
            "error": self.error,
            "status_code": self.status_code,
        }


@dataclass(frozen=True)
class DeferredFiringResult:
    """Outcome of firing one deferred message."""

    message_id: str
    success: bool
    error: Optional[str] = None
    status_code: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id,
            "success": self.success,
            "error": self.error,
            "status_code": self.status_code,
        }


T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Result of a create/update/cancel operation.

    Validation failures are reported through this value rather than raised.
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error_code: ErrorCode, error: str) -> "OperationResult[T]":
        return cls(success=False, error=error, error_code=error_code)
