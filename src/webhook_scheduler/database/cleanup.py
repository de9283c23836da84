"""Database cleanup for data retention."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete

from ..domain.models import DeferredStatus
from .engine import DatabaseEngine
from .models import DeferredMessage, MessageLog

logger = logging.getLogger(__name__)


class DataCleanup:
    """Removes old message history and finished deferred messages.

    Pending deferred messages, schedules, templates and targets are never
    touched, whatever their age.
    """

    def __init__(self, db_engine: DatabaseEngine, retention_days: int):
        """
        Initialize cleanup handler.

        Args:
            db_engine: Database engine to clean
            retention_days: Number of days to retain history; 0 disables cleanup
        """
        self.db_engine = db_engine
        self.retention_days = retention_days

    @property
    def enabled(self) -> bool:
        return self.retention_days > 0

    def cleanup_old_data(self, now: Optional[datetime] = None) -> dict:
        """
        Remove history older than the retention period.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            Dictionary with counts of deleted records per table
        """
        if not self.enabled:
            logger.debug("Retention disabled, skipping cleanup")
            return {}

        now = now or datetime.now(timezone.utc)
        cutoff_date = now - timedelta(days=self.retention_days)
        deleted_counts = {}

        logger.info(f"Starting cleanup of data older than {cutoff_date.isoformat()}")

        with self.db_engine.session_scope() as session:
            result = session.execute(
                delete(MessageLog).where(MessageLog.sent_at < cutoff_date)
            )
            deleted_counts["message_logs"] = result.rowcount

            # Only finished deferred messages; pending ones are still owed a send
            result = session.execute(
                delete(DeferredMessage).where(
                    DeferredMessage.status.in_(
                        [DeferredStatus.SENT.value, DeferredStatus.CANCELLED.value]
                    ),
                    DeferredMessage.created_at < cutoff_date,
                )
            )
            deleted_counts["deferred_messages"] = result.rowcount

        total_deleted = sum(deleted_counts.values())
        logger.info(f"Cleanup complete: {total_deleted} total records deleted")
        logger.debug(f"Deleted by table: {deleted_counts}")

        return deleted_counts
