"""Deferred one-off send engine."""

import dataclasses
import logging
from datetime import datetime
from typing import List, Optional

from ..constants import (
    ERR_ALREADY_CANCELLED,
    ERR_ALREADY_SENT,
    ERR_MESSAGE_NOT_FOUND,
    ERR_NOT_DEFERRED,
    ERR_SCHEDULED_IN_PAST,
    ERR_TARGET_DISABLED,
    ERR_TARGET_DISABLED_CANCELLED,
    ERR_TARGET_NOT_FOUND,
)
from ..domain.models import (
    DeferredFiringResult,
    DeferredMessage,
    DeferredStatus,
    DeliveryResult,
    DeliveryStatus,
    DueMessage,
    ErrorCode,
    MessageLogEntry,
    MessageSource,
    OperationResult,
)
from ..metrics import MetricsCollector
from ..store.interface import Store
from ..utils.time import Clock, ensure_aware, utc_now
from ..webhook.client import DeliveryClient
from ..webhook.payload import build_text_payload, validate_text_content

logger = logging.getLogger(__name__)


class DeferredSendEngine:
    """Creates, cancels and fires one-off messages scheduled for a later time.

    A deferred message is consumed by its firing: it ends up Sent whether the
    delivery worked or not, and a message whose target has been disabled is
    cancelled instead of being kept for a later tick.
    """

    name = "deferred"

    def __init__(
        self,
        store: Store,
        client: DeliveryClient,
        clock: Clock = utc_now,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.client = client
        self.clock = clock
        self.metrics = metrics

    def create_deferred(
        self, target_id: str, content: str, scheduled_for: datetime
    ) -> OperationResult[DeferredMessage]:
        """
        Schedule a plain-text message for later delivery.

        Args:
            target_id: Webhook target id
            content: Message text
            scheduled_for: When to send; naive values are taken as UTC

        Returns:
            OperationResult carrying the new Pending message, or the reason it
            was rejected
        """
        content_error = validate_text_content(content)
        if content_error:
            return OperationResult.fail(ErrorCode.VALIDATION, content_error)

        scheduled_for = ensure_aware(scheduled_for)
        now = self.clock()
        if scheduled_for <= now:
            return OperationResult.fail(ErrorCode.VALIDATION, ERR_SCHEDULED_IN_PAST)

        target = self.store.get_target(target_id)
        if target is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)
        if not target.is_active:
            return OperationResult.fail(ErrorCode.TARGET_DISABLED, ERR_TARGET_DISABLED)

        message = self.store.add_deferred(
            DeferredMessage(
                webhook_id=target.id,
                content=content,
                scheduled_for=scheduled_for,
                created_at=now,
            )
        )
        logger.info(
            f"Deferred message {message.id} scheduled for {scheduled_for.isoformat()} "
            f"on target {target.id}"
        )
        return OperationResult.ok(message)

    def cancel(self, message_id: str) -> OperationResult[DeferredMessage]:
        """
        Cancel a pending deferred message.

        Returns:
            OperationResult with the cancelled message; not found, not a
            deferred message, already sent and already cancelled are each
            reported with their own error code
        """
        message = self.store.get_deferred(message_id)
        if message is None:
            # Ids of immediate sends live in the message log
            if self.store.get_message_log(message_id) is not None:
                return OperationResult.fail(ErrorCode.NOT_DEFERRED, ERR_NOT_DEFERRED)
            return OperationResult.fail(ErrorCode.MESSAGE_NOT_FOUND, ERR_MESSAGE_NOT_FOUND)

        if message.status is DeferredStatus.PENDING:
            cancelled = self.store.transition_deferred(
                message_id, DeferredStatus.PENDING, DeferredStatus.CANCELLED
            )
            if cancelled is not None:
                logger.info(f"Deferred message {message_id} cancelled")
                return OperationResult.ok(cancelled)
            # Claimed by the engine between the read and the write
            message = self.store.get_deferred(message_id)
            if message is None:
                return OperationResult.fail(ErrorCode.MESSAGE_NOT_FOUND, ERR_MESSAGE_NOT_FOUND)

        if message.status is DeferredStatus.CANCELLED:
            return OperationResult.fail(ErrorCode.ALREADY_CANCELLED, ERR_ALREADY_CANCELLED)
        return OperationResult.fail(ErrorCode.ALREADY_SENT, ERR_ALREADY_SENT)

    async def process_due_pending(self) -> List[DeferredFiringResult]:
        """
        Fire every pending message whose scheduled time has passed.

        Messages are processed one at a time, earliest scheduled first and
        then earliest created. Each message is persisted as soon as it has
        been handled.

        Returns:
            One result per due message that was still pending when its turn
            came; messages cancelled or deleted during the run are skipped
        """
        due = self.store.find_due_pending(self.clock())
        if not due:
            logger.debug("No due deferred messages")
            return []

        logger.info(f"Processing {len(due)} due deferred message(s)")
        results = []
        for item in due:
            result = await self._fire(item)
            if result is not None:
                results.append(result)

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Deferred messages processed: {succeeded}/{len(results)} delivered")
        return results

    async def _fire(self, item: DueMessage) -> Optional[DeferredFiringResult]:
        message = item.message
        now = self.clock()

        # The due list was read at the start of the run; targets may have changed since
        target = self.store.get_target(item.target.id)
        if target is None:
            logger.info(f"Deferred message {message.id}: target was deleted, skipping")
            return None

        if not target.is_active:
            cancelled = self.store.transition_deferred(
                message.id,
                DeferredStatus.PENDING,
                DeferredStatus.CANCELLED,
                error_message=ERR_TARGET_DISABLED_CANCELLED,
            )
            if cancelled is None:
                logger.info(f"Deferred message {message.id} is no longer pending, skipping")
                return None
            logger.warning(
                f"Deferred message {message.id}: target {target.id} is disabled, cancelled"
            )
            if self.metrics:
                self.metrics.record_firing(self.name, False)
            return DeferredFiringResult(
                message_id=message.id, success=False, error=ERR_TARGET_DISABLED_CANCELLED
            )

        # Claim before sending; a cancel arriving while the request is in flight sees Sent
        claimed = self.store.transition_deferred(
            message.id, DeferredStatus.PENDING, DeferredStatus.SENT, sent_at=now
        )
        if claimed is None:
            logger.info(f"Deferred message {message.id} is no longer pending, skipping")
            return None

        try:
            delivery = await self.client.deliver(target.url, build_text_payload(claimed.content))
        except Exception as e:
            logger.error(f"Unexpected error sending deferred message {message.id}: {e}", exc_info=True)
            if self.metrics:
                self.metrics.record_error("deferred_engine", type(e).__name__)
            delivery = DeliveryResult(success=False, error=str(e) or type(e).__name__)

        outcome = DeliveryStatus.SUCCESS if delivery.success else DeliveryStatus.FAILED
        recorded = self.store.update_deferred(
            dataclasses.replace(
                claimed,
                outcome=outcome,
                status_code=delivery.status_code,
                error_message=delivery.error,
            )
        )
        if recorded is None:
            # Deleted together with its target during delivery
            logger.warning(
                f"Deferred message {message.id} was deleted during delivery; outcome not recorded"
            )
        else:
            self.store.record_delivery(target.id, delivery.success, now)
            self.store.append_message_log(
                MessageLogEntry(
                    webhook_id=target.id,
                    content=claimed.content,
                    status=outcome,
                    status_code=delivery.status_code,
                    error_message=delivery.error,
                    sent_at=now,
                    source=MessageSource.DEFERRED,
                    source_id=message.id,
                )
            )
        if self.metrics:
            self.metrics.record_firing(self.name, delivery.success)

        return DeferredFiringResult(
            message_id=message.id,
            success=delivery.success,
            error=delivery.error,
            status_code=delivery.status_code,
        )
