"""Message history and deferred message access."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..constants import DEFAULT_HISTORY_LIMIT, ERR_TARGET_NOT_FOUND, MAX_HISTORY_LIMIT
from ..domain.models import (
    DeferredMessage,
    DeferredStatus,
    ErrorCode,
    MessageLogEntry,
    OperationResult,
)
from ..engines.deferred import DeferredSendEngine
from ..store.interface import Store
from ..utils.time import ensure_aware

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageHistoryPage:
    """One page of a target's message history, newest first."""

    messages: List[MessageLogEntry]
    has_more: bool
    next_cursor: Optional[datetime] = None


class MessageService:
    """Read access to message history plus the deferred message operations."""

    def __init__(self, store: Store, deferred: DeferredSendEngine):
        self.store = store
        self.deferred = deferred

    def list_history(
        self,
        webhook_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
        cursor: Optional[datetime] = None,
    ) -> OperationResult[MessageHistoryPage]:
        """
        Page through a target's history.

        Args:
            webhook_id: Target id
            limit: Page size, clamped to 1..MAX_HISTORY_LIMIT
            cursor: ``next_cursor`` of the previous page; only older entries
                are returned

        Returns:
            OperationResult with the page
        """
        if self.store.get_target(webhook_id) is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)

        limit = max(1, min(limit, MAX_HISTORY_LIMIT))
        before = ensure_aware(cursor) if cursor is not None else None
        messages, has_more = self.store.list_message_logs(webhook_id, limit, before)

        next_cursor = messages[-1].sent_at if has_more and messages else None
        return OperationResult.ok(
            MessageHistoryPage(messages=messages, has_more=has_more, next_cursor=next_cursor)
        )

    def list_deferred(
        self, webhook_id: str, status: Optional[DeferredStatus] = None
    ) -> OperationResult[List[DeferredMessage]]:
        """A target's deferred messages, soonest scheduled first."""
        if self.store.get_target(webhook_id) is None:
            return OperationResult.fail(ErrorCode.TARGET_NOT_FOUND, ERR_TARGET_NOT_FOUND)
        return OperationResult.ok(self.store.list_deferred(webhook_id, status))

    def schedule_message(
        self, webhook_id: str, content: str, scheduled_for: datetime
    ) -> OperationResult[DeferredMessage]:
        return self.deferred.create_deferred(webhook_id, content, scheduled_for)

    def cancel_message(self, message_id: str) -> OperationResult[DeferredMessage]:
        return self.deferred.cancel(message_id)
