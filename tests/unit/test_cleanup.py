"""Unit tests for history retention cleanup."""

from datetime import datetime, timedelta, timezone

from webhook_scheduler.database import DataCleanup
from webhook_scheduler.domain.models import (
    DeferredMessage,
    DeferredStatus,
    DeliveryStatus,
    IntervalPolicy,
    MessageLogEntry,
    RecurringSchedule,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestDataCleanup:
    """Test DataCleanup."""

    def test_disabled_when_zero(self, db_engine):
        cleanup = DataCleanup(db_engine, retention_days=0)
        assert cleanup.enabled is False
        assert cleanup.cleanup_old_data(NOW) == {}

    def test_removes_old_history(self, db_engine, store, target):
        old = store.append_message_log(
            MessageLogEntry(
                webhook_id=target.id, content="old", status=DeliveryStatus.SUCCESS,
                sent_at=NOW - timedelta(days=31),
            )
        )
        recent = store.append_message_log(
            MessageLogEntry(
                webhook_id=target.id, content="recent", status=DeliveryStatus.SUCCESS,
                sent_at=NOW - timedelta(days=1),
            )
        )

        counts = DataCleanup(db_engine, retention_days=30).cleanup_old_data(NOW)

        assert counts["message_logs"] == 1
        assert store.get_message_log(old.id) is None
        assert store.get_message_log(recent.id) is not None

    def test_keeps_pending_deferred(self, db_engine, store, target):
        long_ago = NOW - timedelta(days=90)
        pending = store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="p", scheduled_for=NOW + timedelta(days=1),
                created_at=long_ago,
            )
        )
        sent = store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="s", scheduled_for=long_ago,
                status=DeferredStatus.SENT, created_at=long_ago,
            )
        )
        cancelled = store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="c", scheduled_for=long_ago,
                status=DeferredStatus.CANCELLED, created_at=long_ago,
            )
        )

        counts = DataCleanup(db_engine, retention_days=30).cleanup_old_data(NOW)

        assert counts["deferred_messages"] == 2
        assert store.get_deferred(pending.id) is not None
        assert store.get_deferred(sent.id) is None
        assert store.get_deferred(cancelled.id) is None

    def test_never_touches_schedules_or_targets(self, db_engine, store, target):
        schedule = store.add_schedule(
            RecurringSchedule(
                webhook_id=target.id, name="s", policy=IntervalPolicy(5),
                message_content="x", created_at=NOW - timedelta(days=365),
            )
        )

        DataCleanup(db_engine, retention_days=1).cleanup_old_data(NOW)

        assert store.get_schedule(schedule.id) is not None
        assert store.get_target(target.id) is not None
