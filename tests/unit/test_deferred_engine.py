"""Unit tests for the deferred one-off send engine."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from webhook_scheduler.constants import (
    ERR_ALREADY_CANCELLED,
    ERR_ALREADY_SENT,
    ERR_EMPTY_CONTENT,
    ERR_MESSAGE_NOT_FOUND,
    ERR_NOT_DEFERRED,
    ERR_SCHEDULED_IN_PAST,
    ERR_TARGET_DISABLED,
    ERR_TARGET_DISABLED_CANCELLED,
    ERR_TARGET_NOT_FOUND,
)
from webhook_scheduler.domain.models import (
    DeferredStatus,
    DeliveryStatus,
    ErrorCode,
    MessageLogEntry,
    MessageSource,
    WebhookTarget,
)
from webhook_scheduler.engines import DeferredSendEngine


def _disable(store, target):
    store.update_target(
        WebhookTarget(id=target.id, name=target.name, url=target.url, is_active=False)
    )


class TestCreateDeferred:
    """Test scheduling one-off messages."""

    def test_creates_pending(self, deferred_engine, target, clock):
        result = deferred_engine.create_deferred(target.id, "later", clock() + timedelta(hours=1))

        assert result.success is True
        message = result.value
        assert message.status is DeferredStatus.PENDING
        assert message.scheduled_for == clock() + timedelta(hours=1)
        assert message.created_at == clock()
        assert message.sent_at is None

    def test_naive_time_is_utc(self, deferred_engine, target):
        result = deferred_engine.create_deferred(target.id, "later", datetime(2024, 1, 15, 9, 0))

        assert result.success is True
        assert result.value.scheduled_for == datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)

    def test_past_time_rejected(self, deferred_engine, target, clock):
        result = deferred_engine.create_deferred(target.id, "late", clock() - timedelta(seconds=1))

        assert result.success is False
        assert result.error_code is ErrorCode.VALIDATION
        assert result.error == ERR_SCHEDULED_IN_PAST

    def test_now_rejected(self, deferred_engine, target, clock):
        result = deferred_engine.create_deferred(target.id, "now", clock())
        assert result.error == ERR_SCHEDULED_IN_PAST

    def test_empty_content_rejected(self, deferred_engine, target, clock):
        result = deferred_engine.create_deferred(target.id, "  ", clock() + timedelta(hours=1))
        assert result.error == ERR_EMPTY_CONTENT

    def test_unknown_target(self, deferred_engine, clock):
        result = deferred_engine.create_deferred("nope", "x", clock() + timedelta(hours=1))
        assert result.error_code is ErrorCode.TARGET_NOT_FOUND
        assert result.error == ERR_TARGET_NOT_FOUND

    def test_disabled_target(self, deferred_engine, store, target, clock):
        _disable(store, target)
        result = deferred_engine.create_deferred(target.id, "x", clock() + timedelta(hours=1))
        assert result.error_code is ErrorCode.TARGET_DISABLED
        assert result.error == ERR_TARGET_DISABLED


class TestCancel:
    """Test cancelling one-off messages."""

    def test_cancel_pending(self, deferred_engine, store, target, clock):
        message = deferred_engine.create_deferred(target.id, "x", clock() + timedelta(hours=1)).value

        result = deferred_engine.cancel(message.id)

        assert result.success is True
        assert result.value.status is DeferredStatus.CANCELLED
        assert store.get_deferred(message.id).status is DeferredStatus.CANCELLED

    def test_cancel_twice(self, deferred_engine, target, clock):
        message = deferred_engine.create_deferred(target.id, "x", clock() + timedelta(hours=1)).value
        deferred_engine.cancel(message.id)

        result = deferred_engine.cancel(message.id)

        assert result.error_code is ErrorCode.ALREADY_CANCELLED
        assert result.error == ERR_ALREADY_CANCELLED

    def test_unknown_id(self, deferred_engine):
        result = deferred_engine.cancel("nope")
        assert result.error_code is ErrorCode.MESSAGE_NOT_FOUND
        assert result.error == ERR_MESSAGE_NOT_FOUND

    def test_immediate_send_is_not_deferred(self, deferred_engine, store, target):
        entry = store.append_message_log(
            MessageLogEntry(webhook_id=target.id, content="now", status=DeliveryStatus.SUCCESS)
        )

        result = deferred_engine.cancel(entry.id)

        assert result.error_code is ErrorCode.NOT_DEFERRED
        assert result.error == ERR_NOT_DEFERRED


@pytest.mark.asyncio
class TestProcessDuePending:
    """Test firing of due one-off messages."""

    async def test_sends_due_message(self, deferred_engine, store, target, clock, transport):
        message = deferred_engine.create_deferred(target.id, "hello", clock() + timedelta(minutes=5)).value
        clock.advance(minutes=5)

        results = await deferred_engine.process_due_pending()

        assert len(results) == 1
        assert results[0].message_id == message.id
        assert results[0].success is True
        assert transport.bodies == [{"content": "hello"}]

        sent = store.get_deferred(message.id)
        assert sent.status is DeferredStatus.SENT
        assert sent.outcome is DeliveryStatus.SUCCESS
        assert sent.sent_at == clock()
        assert sent.status_code == 204

        entries, _ = store.list_message_logs(target.id, limit=10)
        assert entries[0].source is MessageSource.DEFERRED
        assert entries[0].source_id == message.id
        assert entries[0].content == "hello"
        assert store.get_target(target.id).success_count == 1

    async def test_not_yet_due(self, deferred_engine, target, clock, transport):
        deferred_engine.create_deferred(target.id, "later", clock() + timedelta(minutes=5))

        assert await deferred_engine.process_due_pending() == []
        assert transport.requests == []

    async def test_failed_delivery_still_consumed(
        self, deferred_engine, store, target, clock, transport
    ):
        transport.responses = [httpx.Response(400, json={"message": "Cannot send an empty message"})]
        message = deferred_engine.create_deferred(target.id, "x", clock() + timedelta(minutes=1)).value
        clock.advance(minutes=1)

        results = await deferred_engine.process_due_pending()

        assert results[0].success is False
        assert results[0].status_code == 400

        sent = store.get_deferred(message.id)
        assert sent.status is DeferredStatus.SENT
        assert sent.outcome is DeliveryStatus.FAILED
        assert sent.status_code == 400
        assert "Cannot send an empty message" in sent.error_message
        assert store.get_target(target.id).fail_count == 1

        # Never retried
        clock.advance(minutes=1)
        assert await deferred_engine.process_due_pending() == []
        assert len(transport.requests) == 1

    async def test_disabled_target_cancels(self, deferred_engine, store, target, clock, transport):
        message = deferred_engine.create_deferred(target.id, "x", clock() + timedelta(minutes=1)).value
        _disable(store, target)
        clock.advance(minutes=1)

        results = await deferred_engine.process_due_pending()

        assert transport.requests == []
        assert results[0].success is False
        assert results[0].error == ERR_TARGET_DISABLED_CANCELLED

        cancelled = store.get_deferred(message.id)
        assert cancelled.status is DeferredStatus.CANCELLED
        assert cancelled.error_message == ERR_TARGET_DISABLED_CANCELLED
        assert cancelled.sent_at is None

        entries, _ = store.list_message_logs(target.id, limit=10)
        assert entries == []

    async def test_cancelled_not_sent(self, deferred_engine, target, clock, transport):
        message = deferred_engine.create_deferred(target.id, "x", clock() + timedelta(minutes=1)).value
        deferred_engine.cancel(message.id)
        clock.advance(minutes=1)

        assert await deferred_engine.process_due_pending() == []
        assert transport.requests == []

    async def test_sent_cannot_be_cancelled(self, deferred_engine, target, clock):
        message = deferred_engine.create_deferred(target.id, "x", clock() + timedelta(minutes=1)).value
        clock.advance(minutes=1)
        await deferred_engine.process_due_pending()

        result = deferred_engine.cancel(message.id)

        assert result.error_code is ErrorCode.ALREADY_SENT
        assert result.error == ERR_ALREADY_SENT

    async def test_order_by_scheduled_then_created(self, deferred_engine, target, clock, transport):
        base = clock()
        deferred_engine.create_deferred(target.id, "b-later", base + timedelta(minutes=10))
        clock.advance(seconds=1)
        deferred_engine.create_deferred(target.id, "a-first", base + timedelta(minutes=5))
        clock.advance(seconds=1)
        deferred_engine.create_deferred(target.id, "c-tie", base + timedelta(minutes=10))
        clock.now = base + timedelta(minutes=10)

        await deferred_engine.process_due_pending()

        assert [b["content"] for b in transport.bodies] == ["a-first", "b-later", "c-tie"]

    async def test_firing_metrics(self, deferred_engine, target, clock, metrics):
        deferred_engine.create_deferred(target.id, "x", clock() + timedelta(minutes=1))
        clock.advance(minutes=1)

        await deferred_engine.process_due_pending()

        assert metrics.registry.get_sample_value(
            "webhook_scheduler_firings_total", {"engine": "deferred", "outcome": "success"}
        ) == 1


@pytest.mark.asyncio
class TestChangesDuringRun:
    """Cancels and target edits that land while an earlier message is being delivered."""

    @staticmethod
    def _engine(store, make_client, clock, on_first):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if len(requests) == 1:
                on_first()
            return httpx.Response(204)

        engine = DeferredSendEngine(store, make_client(handler), clock=clock)
        return engine, requests

    def _two_due(self, engine, target, clock, second_target=None):
        first = engine.create_deferred(target.id, "first", clock() + timedelta(minutes=1)).value
        second = engine.create_deferred(
            (second_target or target).id, "second", clock() + timedelta(minutes=2)
        ).value
        clock.advance(minutes=2)
        return first, second

    async def test_cancel_of_later_message_is_honoured(self, store, make_client, target, clock):
        outcome = {}
        engine, requests = self._engine(
            store, make_client, clock, lambda: outcome.update(cancel=engine.cancel(second.id))
        )
        first, second = self._two_due(engine, target, clock)

        results = await engine.process_due_pending()

        assert outcome["cancel"].success is True
        assert [r.message_id for r in results] == [first.id]
        assert len(requests) == 1
        assert store.get_deferred(second.id).status is DeferredStatus.CANCELLED
        assert store.get_deferred(first.id).status is DeferredStatus.SENT

    async def test_cancel_of_in_flight_message_reports_sent(self, store, make_client, target, clock):
        outcome = {}
        engine, requests = self._engine(
            store, make_client, clock, lambda: outcome.update(cancel=engine.cancel(first.id))
        )
        first, second = self._two_due(engine, target, clock)

        await engine.process_due_pending()

        assert outcome["cancel"].error_code is ErrorCode.ALREADY_SENT
        assert len(requests) == 2
        sent = store.get_deferred(first.id)
        assert sent.status is DeferredStatus.SENT
        assert sent.outcome is DeliveryStatus.SUCCESS

    async def test_target_disabled_mid_run_cancels(self, store, make_client, target, clock):
        other = store.add_target(WebhookTarget(name="other", url="https://discord.com/api/webhooks/9/other"))
        engine, requests = self._engine(store, make_client, clock, lambda: _disable(store, other))
        first, second = self._two_due(engine, target, clock, second_target=other)

        results = await engine.process_due_pending()

        assert len(requests) == 1
        assert results[1].error == ERR_TARGET_DISABLED_CANCELLED
        assert store.get_deferred(second.id).status is DeferredStatus.CANCELLED

    async def test_target_deleted_mid_run(self, store, make_client, target, clock):
        other = store.add_target(WebhookTarget(name="other", url="https://discord.com/api/webhooks/9/other"))
        engine, requests = self._engine(
            store, make_client, clock, lambda: store.delete_target(target.id)
        )
        first, second = self._two_due(engine, target, clock, second_target=other)

        results = await engine.process_due_pending()

        assert [r.message_id for r in results] == [first.id, second.id]
        assert len(requests) == 2
        assert store.get_deferred(first.id) is None
        assert store.get_deferred(second.id).outcome is DeliveryStatus.SUCCESS
        assert store.get_target(other.id).success_count == 1
