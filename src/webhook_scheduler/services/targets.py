"""Webhook target management and immediate sends."""

import dataclasses
import logging
from typing import List, Optional

from ..constants import (
    ERR_TARGET_DISABLED,
    ERR_TARGET_NOT_FOUND,
    TEST_EMBED_COLOR,
    TEST_EMBED_DESCRIPTION,
    TEST_EMBED_TITLE,
    TEST_MESSAGE_CONTENT,
)
from ..domain.models import (
    DeliveryResult,
    DeliveryStatus,
    ErrorCode,
    MessageLogEntry,
    MessageSource,
    OperationResult,
    WebhookTarget,
)
from ..store.interface import Store
from ..utils.time import Clock, utc_now
from ..webhook.client import DeliveryClient
from ..webhook.models import RichBlock, WirePayload
from ..webhook.payload import build_text_payload, validate_text_content

logger = logging.getLogger(__name__)


def _validate_target_fields(name: Optional[str], url: Optional[str]) -> Optional[str]:
    if name is not None and not name.strip():
        return "name must not be empty"
    if url is not None and not url.startswith(("http://", "https://")):
        return "url must be an http(s) URL"
    return None


class TargetService:
    """CRUD for webhook targets plus manual and test sends."""

    def __init__(self, store: Store, client: DeliveryClient, clock: Clock = utc_now):
        self.store = store
        self.client = client
        self.clock = clock

    def create_target(
        self, name: str, url: str, is_active: bool = True
    ) -> OperationResult[WebhookTarget]:
        """Register a new webhook target."""
        error = _validate_target_fields(name or "", url or "")
        if error:
            return OperationResult.fail(ErrorCode.VALIDATION, error)

        target = self.store.add_target(
            WebhookTarget(name=name.strip(), url=url, is_active=is_active)
        )
        logger.info(f"Created webhook target '{target.name}' ({target.id})")
        return OperationResult.ok(target)

    def get_target(self, target_id: str) -> Optional[WebhookTarget]:
        return self.store.get_target(target_id)

    def list_targets(self) -> List[WebhookTarget]:
        return self.store.list_targets()

    def update_target(
        self,
        target_id: str,
        name: Optional[str] = None,
        url: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> OperationResult[WebhookTarget]:
        """Change the name, URL or active flag of a target; None leaves a field as is."""
        target = self.store.get_target(target_id)
        if target is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)

        error = _validate_target_fields(name, url)
        if error:
            return OperationResult.fail(ErrorCode.VALIDATION, error)

        changes = {}
        if name is not None:
            changes["name"] = name.strip()
        if url is not None:
            changes["url"] = url
        if is_active is not None:
            changes["is_active"] = is_active

        updated = self.store.update_target(dataclasses.replace(target, **changes))
        if updated is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)
        return OperationResult.ok(updated)

    def delete_target(self, target_id: str) -> OperationResult[None]:
        """Delete a target and everything that belongs to it."""
        if not self.store.delete_target(target_id):
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)
        logger.info(f"Deleted webhook target {target_id}")
        return OperationResult.ok()

    async def send_message(self, target_id: str, content: str) -> OperationResult[MessageLogEntry]:
        """
        Send a plain-text message right away.

        Returns:
            OperationResult with the message log entry of the attempt. A
            delivery failure is still a successful operation; the entry's
            status tells whether Discord accepted the message.
        """
        error = validate_text_content(content)
        if error:
            return OperationResult.fail(ErrorCode.VALIDATION, error)

        target = self.store.get_target(target_id)
        if target is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)
        if not target.is_active:
            return OperationResult.fail(ErrorCode.TARGET_DISABLED, ERR_TARGET_DISABLED)

        delivery = await self.client.deliver(target.url, build_text_payload(content))
        now = self.clock()
        self.store.record_delivery(target.id, delivery.success, now)
        entry = self.store.append_message_log(
            MessageLogEntry(
                webhook_id=target.id,
                content=content,
                status=DeliveryStatus.SUCCESS if delivery.success else DeliveryStatus.FAILED,
                status_code=delivery.status_code,
                error_message=delivery.error,
                sent_at=now,
                source=MessageSource.MANUAL,
            )
        )
        return OperationResult.ok(entry)

    async def send_test(self, target_id: str) -> OperationResult[DeliveryResult]:
        """Send a fixed test message naming the target; counters are updated, nothing is logged."""
        target = self.store.get_target(target_id)
        if target is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)

        now = self.clock()
        payload = WirePayload(
            content=TEST_MESSAGE_CONTENT,
            embeds=[
                RichBlock(
                    title=TEST_EMBED_TITLE,
                    description=TEST_EMBED_DESCRIPTION,
                    color=TEST_EMBED_COLOR,
                    fields=[
                        {"name": "Webhook", "value": target.name, "inline": True},
                        {"name": "Sent at", "value": now.strftime("%Y-%m-%d %H:%M:%S %Z"), "inline": True},
                    ],
                    footer={"text": TEST_EMBED_TITLE},
                    timestamp=now.isoformat(),
                )
            ],
        )
        delivery = await self.client.deliver(target.url, payload)
        self.store.record_delivery(target.id, delivery.success, now)
        return OperationResult.ok(delivery)
