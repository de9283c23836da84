"""Unit tests for the SQL-backed store."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import update

from webhook_scheduler.database import models as db
from webhook_scheduler.domain.models import (
    DailyPolicy,
    DeferredMessage,
    DeferredStatus,
    DeliveryStatus,
    IntervalPolicy,
    MessageLogEntry,
    MessageSource,
    RecurringSchedule,
    Template,
    WebhookTarget,
    WeeklyPolicy,
)

T0 = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def _schedule(target, **kwargs) -> RecurringSchedule:
    defaults = dict(
        webhook_id=target.id,
        name="standup",
        policy=IntervalPolicy(30),
        message_content="Standup!",
        next_trigger_at=T0,
    )
    defaults.update(kwargs)
    return RecurringSchedule(**defaults)


class TestTargets:
    """Test webhook target persistence."""

    def test_add_and_get(self, store):
        added = store.add_target(WebhookTarget(name="a", url="https://x/1"))
        fetched = store.get_target(added.id)

        assert fetched == added
        assert fetched.success_count == 0
        assert fetched.created_at.tzinfo is not None

    def test_get_missing(self, store):
        assert store.get_target("nope") is None

    def test_list_newest_first(self, store):
        old = store.add_target(WebhookTarget(name="old", url="https://x/1", created_at=T0))
        new = store.add_target(
            WebhookTarget(name="new", url="https://x/2", created_at=T0 + timedelta(hours=1))
        )
        assert [t.id for t in store.list_targets()] == [new.id, old.id]

    def test_update_ignores_counters(self, store, target):
        changed = store.update_target(
            WebhookTarget(
                id=target.id, name="renamed", url=target.url, is_active=False, success_count=99
            )
        )
        assert changed.name == "renamed"
        assert changed.is_active is False
        assert changed.success_count == 0

    def test_update_missing(self, store):
        assert store.update_target(WebhookTarget(name="x", url="https://x")) is None

    def test_record_delivery(self, store, target):
        store.record_delivery(target.id, True, T0)
        store.record_delivery(target.id, False, T0 + timedelta(minutes=5))

        fetched = store.get_target(target.id)
        assert fetched.success_count == 1
        assert fetched.fail_count == 1
        # Only successes move last_used_at
        assert fetched.last_used_at == T0

    def test_delete_cascades(self, store, target):
        schedule = store.add_schedule(_schedule(target))
        message = store.add_deferred(
            DeferredMessage(webhook_id=target.id, content="later", scheduled_for=T0)
        )
        entry = store.append_message_log(
            MessageLogEntry(webhook_id=target.id, content="x", status=DeliveryStatus.SUCCESS)
        )

        assert store.delete_target(target.id) is True
        assert store.get_schedule(schedule.id) is None
        assert store.get_deferred(message.id) is None
        assert store.get_message_log(entry.id) is None

    def test_delete_missing(self, store):
        assert store.delete_target("nope") is False


class TestSchedules:
    """Test recurring schedule persistence."""

    def test_policy_roundtrip(self, store, target):
        for policy in (IntervalPolicy(15), DailyPolicy("09:00"), WeeklyPolicy("18:30", (1, 5))):
            added = store.add_schedule(_schedule(target, policy=policy))
            assert store.get_schedule(added.id).policy == policy

    def test_embed_roundtrip(self, store, target):
        embed = {"title": "T", "fields": [{"name": "n", "value": "v"}]}
        added = store.add_schedule(_schedule(target, message_content=None, embed_data=embed))
        assert store.get_schedule(added.id).embed_data == embed

    def test_unknown_stored_type_loads_as_none(self, store, db_engine, target):
        added = store.add_schedule(_schedule(target))
        with db_engine.session_scope() as session:
            session.execute(
                update(db.WebhookSchedule)
                .where(db.WebhookSchedule.id == added.id)
                .values(schedule_type="monthly")
            )
        assert store.get_schedule(added.id).policy is None

    def test_list_by_target(self, store, target):
        other = store.add_target(WebhookTarget(name="other", url="https://x/2"))
        mine = store.add_schedule(_schedule(target))
        store.add_schedule(_schedule(other))

        assert [s.id for s in store.list_schedules(target.id)] == [mine.id]
        assert len(store.list_schedules()) == 2

    def test_find_due(self, store, target):
        due_late = store.add_schedule(_schedule(target, next_trigger_at=T0))
        due_early = store.add_schedule(_schedule(target, next_trigger_at=T0 - timedelta(minutes=5)))
        store.add_schedule(_schedule(target, next_trigger_at=T0 + timedelta(seconds=1)))
        store.add_schedule(_schedule(target, is_active=False))
        store.add_schedule(_schedule(target, next_trigger_at=None))

        due = store.find_due_schedules(T0)

        assert [d.schedule.id for d in due] == [due_early.id, due_late.id]
        assert all(d.target.id == target.id for d in due)

    def test_find_due_includes_disabled_target(self, store, target):
        store.update_target(WebhookTarget(id=target.id, name=target.name, url=target.url, is_active=False))
        store.add_schedule(_schedule(target))

        due = store.find_due_schedules(T0)
        assert len(due) == 1
        assert due[0].target.is_active is False

    def test_record_firing_counts(self, store, target):
        added = store.add_schedule(_schedule(target))
        later = T0 + timedelta(minutes=30)

        store.record_schedule_firing(added.id, T0, later, success=True)
        store.record_schedule_firing(added.id, later, later + timedelta(minutes=30), success=False)
        store.record_schedule_firing(added.id, later, later + timedelta(minutes=60), success=None)

        fetched = store.get_schedule(added.id)
        assert fetched.success_count == 1
        assert fetched.fail_count == 1
        assert fetched.last_triggered_at == later
        assert fetched.next_trigger_at == later + timedelta(minutes=60)

    def test_update_and_delete(self, store, target):
        added = store.add_schedule(_schedule(target))
        updated = store.update_schedule(
            RecurringSchedule(
                id=added.id,
                webhook_id=target.id,
                name="renamed",
                policy=DailyPolicy("07:00"),
                message_content="new",
                next_trigger_at=T0,
            )
        )
        assert updated.name == "renamed"
        assert updated.policy == DailyPolicy("07:00")
        assert store.delete_schedule(added.id) is True
        assert store.delete_schedule(added.id) is False


class TestTemplates:
    """Test template persistence."""

    def test_crud(self, store):
        added = store.add_template(
            Template(name="daily", policy=DailyPolicy("09:00"), message_content="Morning")
        )
        assert store.get_template(added.id).message_content == "Morning"
        assert [t.id for t in store.list_templates()] == [added.id]

        renamed = store.update_template(
            Template(id=added.id, name="renamed", policy=added.policy, message_content="Morning")
        )
        assert renamed.name == "renamed"

        assert store.delete_template(added.id) is True
        assert store.get_template(added.id) is None


class TestDeferred:
    """Test deferred message persistence."""

    def test_find_due_order(self, store, target):
        first = store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="a", scheduled_for=T0 - timedelta(minutes=1),
                created_at=T0 - timedelta(hours=1),
            )
        )
        tie_old = store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="b", scheduled_for=T0,
                created_at=T0 - timedelta(hours=2),
            )
        )
        tie_new = store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="c", scheduled_for=T0,
                created_at=T0 - timedelta(minutes=30),
            )
        )
        store.add_deferred(
            DeferredMessage(webhook_id=target.id, content="future", scheduled_for=T0 + timedelta(minutes=1))
        )
        store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="done", scheduled_for=T0, status=DeferredStatus.SENT
            )
        )

        due = store.find_due_pending(T0)
        assert [d.message.id for d in due] == [first.id, tie_old.id, tie_new.id]

    def test_update_persists_outcome(self, store, target):
        added = store.add_deferred(
            DeferredMessage(webhook_id=target.id, content="x", scheduled_for=T0)
        )
        store.update_deferred(
            DeferredMessage(
                id=added.id,
                webhook_id=target.id,
                content="x",
                scheduled_for=T0,
                status=DeferredStatus.SENT,
                sent_at=T0,
                outcome=DeliveryStatus.FAILED,
                status_code=400,
                error_message="bad",
            )
        )
        fetched = store.get_deferred(added.id)
        assert fetched.status is DeferredStatus.SENT
        assert fetched.outcome is DeliveryStatus.FAILED
        assert fetched.status_code == 400
        assert fetched.is_terminal

    def test_transition_from_pending(self, store, target):
        added = store.add_deferred(
            DeferredMessage(webhook_id=target.id, content="x", scheduled_for=T0)
        )

        claimed = store.transition_deferred(
            added.id, DeferredStatus.PENDING, DeferredStatus.SENT, sent_at=T0
        )

        assert claimed.status is DeferredStatus.SENT
        assert claimed.sent_at == T0
        assert claimed.outcome is None

    def test_transition_only_from_expected_status(self, store, target):
        added = store.add_deferred(
            DeferredMessage(webhook_id=target.id, content="x", scheduled_for=T0)
        )
        store.transition_deferred(added.id, DeferredStatus.PENDING, DeferredStatus.CANCELLED)

        assert store.transition_deferred(
            added.id, DeferredStatus.PENDING, DeferredStatus.SENT, sent_at=T0
        ) is None
        fetched = store.get_deferred(added.id)
        assert fetched.status is DeferredStatus.CANCELLED
        assert fetched.sent_at is None

    def test_transition_unknown_id(self, store):
        assert store.transition_deferred(
            "missing", DeferredStatus.PENDING, DeferredStatus.CANCELLED
        ) is None

    def test_list_filter_by_status(self, store, target):
        pending = store.add_deferred(
            DeferredMessage(webhook_id=target.id, content="p", scheduled_for=T0)
        )
        store.add_deferred(
            DeferredMessage(
                webhook_id=target.id, content="c", scheduled_for=T0, status=DeferredStatus.CANCELLED
            )
        )
        assert [m.id for m in store.list_deferred(target.id, DeferredStatus.PENDING)] == [pending.id]
        assert len(store.list_deferred(target.id)) == 2


class TestMessageLog:
    """Test message log persistence and paging."""

    def _append(self, store, target, minutes):
        return store.append_message_log(
            MessageLogEntry(
                webhook_id=target.id,
                content=f"m{minutes}",
                status=DeliveryStatus.SUCCESS,
                sent_at=T0 + timedelta(minutes=minutes),
                source=MessageSource.SCHEDULE,
                source_id="s1",
            )
        )

    def test_append_and_get(self, store, target):
        entry = self._append(store, target, 0)
        fetched = store.get_message_log(entry.id)
        assert fetched.source is MessageSource.SCHEDULE
        assert fetched.source_id == "s1"
        assert fetched.sent_at == T0

    def test_paging(self, store, target):
        for minutes in range(5):
            self._append(store, target, minutes)

        page, has_more = store.list_message_logs(target.id, limit=2)
        assert [e.content for e in page] == ["m4", "m3"]
        assert has_more is True

        page, has_more = store.list_message_logs(target.id, limit=2, before=page[-1].sent_at)
        assert [e.content for e in page] == ["m2", "m1"]
        assert has_more is True

        page, has_more = store.list_message_logs(target.id, limit=2, before=page[-1].sent_at)
        assert [e.content for e in page] == ["m0"]
        assert has_more is False
