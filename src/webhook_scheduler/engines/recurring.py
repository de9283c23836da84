"""Recurring schedule trigger engine."""

import logging
from typing import List, Optional

from ..constants import ERR_TARGET_DISABLED
from ..domain.models import (
    DeliveryResult,
    DeliveryStatus,
    DueSchedule,
    MessageLogEntry,
    MessageSource,
    RecurringSchedule,
    ScheduleFiringResult,
)
from ..metrics import MetricsCollector
from ..scheduling.recurrence import compute_next_checked
from ..store.interface import Store
from ..utils.time import Clock, utc_now
from ..webhook.client import DeliveryClient
from ..webhook.payload import build_payload, summarize_payload

logger = logging.getLogger(__name__)


class RecurringScheduleEngine:
    """Fires due recurring schedules and advances their next trigger time.

    Delivery problems are reported as failure results and never raised.
    Storage errors propagate to the caller.
    """

    name = "recurring"

    def __init__(
        self,
        store: Store,
        client: DeliveryClient,
        clock: Clock = utc_now,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Record storage
            client: Delivery client for outbound calls
            clock: Source of the current time; its timezone is the wall clock
                daily and weekly schedules are evaluated in
            metrics: Optional metrics collector
        """
        self.store = store
        self.client = client
        self.clock = clock
        self.metrics = metrics

    async def process_due_schedules(self) -> List[ScheduleFiringResult]:
        """
        Fire every active schedule whose next trigger time has passed.

        Schedules are processed one at a time, in next-trigger order.

        Returns:
            One result per due schedule; schedules deleted, deactivated or
            already advanced since the run started are skipped
        """
        due = self.store.find_due_schedules(self.clock())
        if not due:
            logger.debug("No due schedules")
            return []

        logger.info(f"Processing {len(due)} due schedule(s)")
        results = []
        for item in due:
            result = await self._fire(item)
            if result is not None:
                results.append(result)

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Schedules processed: {succeeded}/{len(results)} delivered")
        return results

    async def _fire(self, item: DueSchedule) -> Optional[ScheduleFiringResult]:
        now = self.clock()
        # The due list was read at the start of the run; earlier deliveries may have taken a while
        schedule = self.store.get_schedule(item.schedule.id)
        target = self.store.get_target(item.target.id)
        if (
            schedule is None
            or target is None
            or not schedule.is_active
            or schedule.next_trigger_at is None
            or schedule.next_trigger_at > now
        ):
            logger.info(f"Schedule {item.schedule.id} is no longer due, skipping")
            return None
        summary = schedule.message_content or schedule.name

        if not target.is_active:
            # The firing is skipped as a failure; the schedule itself stays active
            logger.warning(f"Schedule '{schedule.name}' ({schedule.id}): target {target.id} is disabled")
            delivery = DeliveryResult(success=False, error=ERR_TARGET_DISABLED)
            counted = None
        else:
            try:
                payload = build_payload(schedule)
                summary = summarize_payload(payload)
                delivery = await self.client.deliver(target.url, payload)
            except Exception as e:
                logger.error(
                    f"Unexpected error firing schedule {schedule.id}: {e}", exc_info=True
                )
                if self.metrics:
                    self.metrics.record_error("recurring_engine", type(e).__name__)
                delivery = DeliveryResult(success=False, error=str(e) or type(e).__name__)
            counted = delivery.success

            if self.store.get_target(target.id) is None:
                # Deleted during delivery, taking the schedule and its history with it
                logger.warning(
                    f"Schedule '{schedule.name}' ({schedule.id}): target {target.id} was "
                    f"deleted during delivery; outcome not recorded"
                )
                if self.metrics:
                    self.metrics.record_firing(self.name, delivery.success)
                return _firing_result(schedule, delivery)
            self.store.record_delivery(target.id, delivery.success, now)

        # Recurrence continues whatever the outcome
        next_trigger = compute_next_checked(schedule.policy, now)
        if next_trigger.fallback:
            logger.warning(
                f"Schedule '{schedule.name}' ({schedule.id}) has an unusable recurrence "
                f"policy {schedule.policy!r}; falling back to {next_trigger.at.isoformat()}"
            )
            if self.metrics:
                self.metrics.record_policy_fallback()

        self.store.record_schedule_firing(
            schedule.id, triggered_at=now, next_trigger_at=next_trigger.at, success=counted
        )
        self.store.append_message_log(
            MessageLogEntry(
                webhook_id=target.id,
                content=summary,
                status=DeliveryStatus.SUCCESS if delivery.success else DeliveryStatus.FAILED,
                status_code=delivery.status_code,
                error_message=delivery.error,
                sent_at=now,
                source=MessageSource.SCHEDULE,
                source_id=schedule.id,
            )
        )
        if self.metrics:
            self.metrics.record_firing(self.name, delivery.success)

        return _firing_result(schedule, delivery)


def _firing_result(schedule: RecurringSchedule, delivery: DeliveryResult) -> ScheduleFiringResult:
    return ScheduleFiringResult(
        schedule_id=schedule.id,
        schedule_name=schedule.name,
        success=delivery.success,
        error=delivery.error,
        status_code=delivery.status_code,
    )
