"""Abstract interface for record storage."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from ..domain.models import (
    DeferredMessage,
    DeferredStatus,
    DueMessage,
    DueSchedule,
    MessageLogEntry,
    RecurringSchedule,
    Template,
    WebhookTarget,
)


class Store(ABC):
    """Abstract base class for storage implementations.

    Records go in and come out as immutable values. Changing a record means
    building a modified copy and handing it back through an update method.
    Storage failures are raised, never swallowed.
    """

    # Targets

    @abstractmethod
    def add_target(self, target: WebhookTarget) -> WebhookTarget:
        """
        Insert a new webhook target.

        Returns:
            The stored target, with timestamps filled in
        """
        pass

    @abstractmethod
    def get_target(self, target_id: str) -> Optional[WebhookTarget]:
        """Find a target by id."""
        pass

    @abstractmethod
    def list_targets(self) -> List[WebhookTarget]:
        """All targets, newest first."""
        pass

    @abstractmethod
    def update_target(self, target: WebhookTarget) -> Optional[WebhookTarget]:
        """
        Persist the name, URL and active flag of ``target``.

        Counters are not written here; use record_delivery().

        Returns:
            The stored target, or None if it no longer exists
        """
        pass

    @abstractmethod
    def delete_target(self, target_id: str) -> bool:
        """Delete a target together with its schedules, deferred messages and history."""
        pass

    @abstractmethod
    def record_delivery(self, target_id: str, success: bool, at: datetime) -> None:
        """
        Update a target's delivery counters.

        Args:
            target_id: Target id
            success: Outcome of the delivery; success also sets last-used
            at: Time of the delivery
        """
        pass

    # Recurring schedules

    @abstractmethod
    def add_schedule(self, schedule: RecurringSchedule) -> RecurringSchedule:
        """Insert a new recurring schedule."""
        pass

    @abstractmethod
    def get_schedule(self, schedule_id: str) -> Optional[RecurringSchedule]:
        """Find a schedule by id."""
        pass

    @abstractmethod
    def list_schedules(self, webhook_id: Optional[str] = None) -> List[RecurringSchedule]:
        """Schedules (optionally of one target), newest first."""
        pass

    @abstractmethod
    def update_schedule(self, schedule: RecurringSchedule) -> Optional[RecurringSchedule]:
        """Persist every editable field of ``schedule``."""
        pass

    @abstractmethod
    def delete_schedule(self, schedule_id: str) -> bool:
        """Delete a schedule."""
        pass

    @abstractmethod
    def find_due_schedules(self, now: datetime) -> List[DueSchedule]:
        """
        Active schedules whose next trigger time is at or before ``now``.

        Returns:
            Due schedules with their owning targets, earliest trigger first
        """
        pass

    @abstractmethod
    def record_schedule_firing(
        self,
        schedule_id: str,
        triggered_at: datetime,
        next_trigger_at: datetime,
        success: Optional[bool] = None,
    ) -> None:
        """
        Store the outcome of one schedule firing.

        Args:
            schedule_id: Schedule id
            triggered_at: New last-triggered time
            next_trigger_at: New next-trigger time
            success: Delivery outcome; None leaves the counters untouched
        """
        pass

    # Templates

    @abstractmethod
    def add_template(self, template: Template) -> Template:
        """Insert a new template."""
        pass

    @abstractmethod
    def get_template(self, template_id: str) -> Optional[Template]:
        """Find a template by id."""
        pass

    @abstractmethod
    def list_templates(self) -> List[Template]:
        """All templates, newest first."""
        pass

    @abstractmethod
    def update_template(self, template: Template) -> Optional[Template]:
        """Persist every editable field of ``template``."""
        pass

    @abstractmethod
    def delete_template(self, template_id: str) -> bool:
        """Delete a template."""
        pass

    # Deferred messages

    @abstractmethod
    def add_deferred(self, message: DeferredMessage) -> DeferredMessage:
        """Insert a new deferred message."""
        pass

    @abstractmethod
    def get_deferred(self, message_id: str) -> Optional[DeferredMessage]:
        """Find a deferred message by id."""
        pass

    @abstractmethod
    def update_deferred(self, message: DeferredMessage) -> Optional[DeferredMessage]:
        """Persist status, outcome and send details of ``message``."""
        pass

    @abstractmethod
    def transition_deferred(
        self,
        message_id: str,
        from_status: DeferredStatus,
        to_status: DeferredStatus,
        sent_at: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> Optional[DeferredMessage]:
        """
        Move a message to ``to_status`` only if it is still in ``from_status``.

        The check and the write happen in one statement, so two callers
        racing for the same message cannot both succeed.

        Returns:
            The updated message, or None if it is gone or no longer in
            ``from_status``
        """
        pass

    @abstractmethod
    def list_deferred(
        self, webhook_id: str, status: Optional[DeferredStatus] = None
    ) -> List[DeferredMessage]:
        """A target's deferred messages, soonest scheduled first."""
        pass

    @abstractmethod
    def find_due_pending(self, now: datetime) -> List[DueMessage]:
        """
        Pending deferred messages scheduled at or before ``now``.

        Returns:
            Due messages with their owning targets, ordered by scheduled time
            and then creation time
        """
        pass

    # Message log

    @abstractmethod
    def append_message_log(self, entry: MessageLogEntry) -> MessageLogEntry:
        """Append a delivery record; entries are never modified afterwards."""
        pass

    @abstractmethod
    def get_message_log(self, entry_id: str) -> Optional[MessageLogEntry]:
        """Find a log entry by id."""
        pass

    @abstractmethod
    def list_message_logs(
        self, webhook_id: str, limit: int, before: Optional[datetime] = None
    ) -> Tuple[List[MessageLogEntry], bool]:
        """
        A page of a target's history, newest first.

        Args:
            webhook_id: Target id
            limit: Page size
            before: Only entries sent strictly before this time

        Returns:
            (entries, has_more)
        """
        pass
