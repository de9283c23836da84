"""SQLAlchemy implementation of the Store interface."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import asc, desc
from sqlalchemy.orm import joinedload

from ..database import models as db
from ..database.engine import DatabaseEngine
from ..domain.models import (
    DeferredMessage,
    DeferredStatus,
    DeliveryStatus,
    DueMessage,
    DueSchedule,
    MessageLogEntry,
    MessageSource,
    RecurringSchedule,
    Template,
    WebhookTarget,
)
from ..scheduling.recurrence import policy_from_columns, policy_to_columns
from .interface import Store

logger = logging.getLogger(__name__)


# ============================================================================
# Row <-> record conversion
# ============================================================================

def _to_target(row: db.Webhook) -> WebhookTarget:
    return WebhookTarget(
        id=row.id,
        name=row.name,
        url=row.url,
        is_active=row.is_active,
        success_count=row.success_count,
        fail_count=row.fail_count,
        last_used_at=row.last_used_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_schedule(row: db.WebhookSchedule) -> RecurringSchedule:
    policy = policy_from_columns(
        row.schedule_type, row.interval_minutes, row.schedule_time, row.schedule_days
    )
    if policy is None:
        logger.warning(
            f"Schedule {row.id} has unrecognized schedule_type {row.schedule_type!r}"
        )
    return RecurringSchedule(
        id=row.id,
        webhook_id=row.webhook_id,
        name=row.name,
        policy=policy,
        message_content=row.message_content,
        embed_data=row.embed_data,
        image_url=row.image_url,
        is_active=row.is_active,
        last_triggered_at=row.last_triggered_at,
        next_trigger_at=row.next_trigger_at,
        success_count=row.success_count,
        fail_count=row.fail_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_template(row: db.Template) -> Template:
    return Template(
        id=row.id,
        name=row.name,
        description=row.description,
        policy=policy_from_columns(
            row.schedule_type, row.interval_minutes, row.schedule_time, row.schedule_days
        ),
        message_content=row.message_content,
        embed_data=row.embed_data,
        image_url=row.image_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_deferred(row: db.DeferredMessage) -> DeferredMessage:
    return DeferredMessage(
        id=row.id,
        webhook_id=row.webhook_id,
        content=row.content,
        scheduled_for=row.scheduled_for,
        status=DeferredStatus(row.status),
        created_at=row.created_at,
        sent_at=row.sent_at,
        outcome=DeliveryStatus(row.outcome) if row.outcome else None,
        status_code=row.status_code,
        error_message=row.error_message,
    )


def _to_log(row: db.MessageLog) -> MessageLogEntry:
    return MessageLogEntry(
        id=row.id,
        webhook_id=row.webhook_id,
        content=row.content,
        status=DeliveryStatus(row.status),
        status_code=row.status_code,
        error_message=row.error_message,
        sent_at=row.sent_at,
        source=MessageSource(row.source),
        source_id=row.source_id,
    )


def _policy_columns(policy) -> dict:
    # An unrecognized stored policy loads as None; leave its raw columns untouched
    return policy_to_columns(policy) if policy is not None else {}


def _schedule_columns(schedule: RecurringSchedule) -> dict:
    columns = _policy_columns(schedule.policy)
    columns.update(
        webhook_id=schedule.webhook_id,
        name=schedule.name,
        message_content=schedule.message_content,
        embed_data=schedule.embed_data,
        image_url=schedule.image_url,
        is_active=schedule.is_active,
        last_triggered_at=schedule.last_triggered_at,
        next_trigger_at=schedule.next_trigger_at,
    )
    return columns


def _template_columns(template: Template) -> dict:
    columns = _policy_columns(template.policy)
    columns.update(
        name=template.name,
        description=template.description,
        message_content=template.message_content,
        embed_data=template.embed_data,
        image_url=template.image_url,
    )
    return columns


def _optional_created_at(created_at: Optional[datetime]) -> dict:
    # Leave the column default in charge unless the record carries a value
    return {"created_at": created_at} if created_at is not None else {}


class SqlStore(Store):
    """Store backed by a SQLite database through SQLAlchemy.

    Every method runs in its own transaction, so each write is committed
    before the method returns.
    """

    def __init__(self, db_engine: DatabaseEngine):
        """
        Initialize the store.

        Args:
            db_engine: Initialized database engine
        """
        self.db_engine = db_engine

    # Targets

    def add_target(self, target: WebhookTarget) -> WebhookTarget:
        with self.db_engine.session_scope() as session:
            row = db.Webhook(
                id=target.id,
                name=target.name,
                url=target.url,
                is_active=target.is_active,
                success_count=target.success_count,
                fail_count=target.fail_count,
                last_used_at=target.last_used_at,
                **_optional_created_at(target.created_at),
            )
            session.add(row)
            session.flush()
            return _to_target(row)

    def get_target(self, target_id: str) -> Optional[WebhookTarget]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.Webhook, target_id)
            return _to_target(row) if row else None

    def list_targets(self) -> List[WebhookTarget]:
        with self.db_engine.session_scope() as session:
            rows = session.query(db.Webhook).order_by(desc(db.Webhook.created_at)).all()
            return [_to_target(row) for row in rows]

    def update_target(self, target: WebhookTarget) -> Optional[WebhookTarget]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.Webhook, target.id)
            if row is None:
                return None
            row.name = target.name
            row.url = target.url
            row.is_active = target.is_active
            session.flush()
            return _to_target(row)

    def delete_target(self, target_id: str) -> bool:
        with self.db_engine.session_scope() as session:
            row = session.get(db.Webhook, target_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def record_delivery(self, target_id: str, success: bool, at: datetime) -> None:
        with self.db_engine.session_scope() as session:
            query = session.query(db.Webhook).filter(db.Webhook.id == target_id)
            if success:
                query.update(
                    {
                        db.Webhook.success_count: db.Webhook.success_count + 1,
                        db.Webhook.last_used_at: at,
                    },
                    synchronize_session=False,
                )
            else:
                query.update(
                    {db.Webhook.fail_count: db.Webhook.fail_count + 1},
                    synchronize_session=False,
                )

    # Recurring schedules

    def add_schedule(self, schedule: RecurringSchedule) -> RecurringSchedule:
        with self.db_engine.session_scope() as session:
            row = db.WebhookSchedule(
                id=schedule.id,
                success_count=schedule.success_count,
                fail_count=schedule.fail_count,
                **_schedule_columns(schedule),
                **_optional_created_at(schedule.created_at),
            )
            session.add(row)
            session.flush()
            return _to_schedule(row)

    def get_schedule(self, schedule_id: str) -> Optional[RecurringSchedule]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.WebhookSchedule, schedule_id)
            return _to_schedule(row) if row else None

    def list_schedules(self, webhook_id: Optional[str] = None) -> List[RecurringSchedule]:
        with self.db_engine.session_scope() as session:
            query = session.query(db.WebhookSchedule)
            if webhook_id is not None:
                query = query.filter(db.WebhookSchedule.webhook_id == webhook_id)
            rows = query.order_by(desc(db.WebhookSchedule.created_at)).all()
            return [_to_schedule(row) for row in rows]

    def update_schedule(self, schedule: RecurringSchedule) -> Optional[RecurringSchedule]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.WebhookSchedule, schedule.id)
            if row is None:
                return None
            for key, value in _schedule_columns(schedule).items():
                setattr(row, key, value)
            session.flush()
            return _to_schedule(row)

    def delete_schedule(self, schedule_id: str) -> bool:
        with self.db_engine.session_scope() as session:
            row = session.get(db.WebhookSchedule, schedule_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def find_due_schedules(self, now: datetime) -> List[DueSchedule]:
        with self.db_engine.session_scope() as session:
            rows = (
                session.query(db.WebhookSchedule)
                .options(joinedload(db.WebhookSchedule.webhook))
                .filter(
                    db.WebhookSchedule.is_active.is_(True),
                    db.WebhookSchedule.next_trigger_at.is_not(None),
                    db.WebhookSchedule.next_trigger_at <= now,
                )
                .order_by(asc(db.WebhookSchedule.next_trigger_at))
                .all()
            )
            return [
                DueSchedule(schedule=_to_schedule(row), target=_to_target(row.webhook))
                for row in rows
            ]

    def record_schedule_firing(
        self,
        schedule_id: str,
        triggered_at: datetime,
        next_trigger_at: datetime,
        success: Optional[bool] = None,
    ) -> None:
        values = {
            db.WebhookSchedule.last_triggered_at: triggered_at,
            db.WebhookSchedule.next_trigger_at: next_trigger_at,
        }
        if success is True:
            values[db.WebhookSchedule.success_count] = db.WebhookSchedule.success_count + 1
        elif success is False:
            values[db.WebhookSchedule.fail_count] = db.WebhookSchedule.fail_count + 1

        with self.db_engine.session_scope() as session:
            session.query(db.WebhookSchedule).filter(
                db.WebhookSchedule.id == schedule_id
            ).update(values, synchronize_session=False)

    # Templates

    def add_template(self, template: Template) -> Template:
        with self.db_engine.session_scope() as session:
            row = db.Template(
                id=template.id,
                **_template_columns(template),
                **_optional_created_at(template.created_at),
            )
            session.add(row)
            session.flush()
            return _to_template(row)

    def get_template(self, template_id: str) -> Optional[Template]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.Template, template_id)
            return _to_template(row) if row else None

    def list_templates(self) -> List[Template]:
        with self.db_engine.session_scope() as session:
            rows = session.query(db.Template).order_by(desc(db.Template.created_at)).all()
            return [_to_template(row) for row in rows]

    def update_template(self, template: Template) -> Optional[Template]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.Template, template.id)
            if row is None:
                return None
            for key, value in _template_columns(template).items():
                setattr(row, key, value)
            session.flush()
            return _to_template(row)

    def delete_template(self, template_id: str) -> bool:
        with self.db_engine.session_scope() as session:
            row = session.get(db.Template, template_id)
            if row is None:
                return False
            session.delete(row)
            return True

    # Deferred messages

    def add_deferred(self, message: DeferredMessage) -> DeferredMessage:
        with self.db_engine.session_scope() as session:
            row = db.DeferredMessage(
                id=message.id,
                webhook_id=message.webhook_id,
                content=message.content,
                status=message.status.value,
                scheduled_for=message.scheduled_for,
                **_optional_created_at(message.created_at),
            )
            session.add(row)
            session.flush()
            return _to_deferred(row)

    def get_deferred(self, message_id: str) -> Optional[DeferredMessage]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.DeferredMessage, message_id)
            return _to_deferred(row) if row else None

    def update_deferred(self, message: DeferredMessage) -> Optional[DeferredMessage]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.DeferredMessage, message.id)
            if row is None:
                return None
            row.content = message.content
            row.status = message.status.value
            row.scheduled_for = message.scheduled_for
            row.sent_at = message.sent_at
            row.outcome = message.outcome.value if message.outcome else None
            row.status_code = message.status_code
            row.error_message = message.error_message
            session.flush()
            return _to_deferred(row)

    def transition_deferred(
        self,
        message_id: str,
        from_status: DeferredStatus,
        to_status: DeferredStatus,
        sent_at: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> Optional[DeferredMessage]:
        values = {db.DeferredMessage.status: to_status.value}
        if sent_at is not None:
            values[db.DeferredMessage.sent_at] = sent_at
        if error_message is not None:
            values[db.DeferredMessage.error_message] = error_message

        with self.db_engine.session_scope() as session:
            updated = (
                session.query(db.DeferredMessage)
                .filter(
                    db.DeferredMessage.id == message_id,
                    db.DeferredMessage.status == from_status.value,
                )
                .update(values, synchronize_session=False)
            )
            if not updated:
                return None
            return _to_deferred(session.get(db.DeferredMessage, message_id))

    def list_deferred(
        self, webhook_id: str, status: Optional[DeferredStatus] = None
    ) -> List[DeferredMessage]:
        with self.db_engine.session_scope() as session:
            query = session.query(db.DeferredMessage).filter(
                db.DeferredMessage.webhook_id == webhook_id
            )
            if status is not None:
                query = query.filter(db.DeferredMessage.status == status.value)
            rows = query.order_by(
                asc(db.DeferredMessage.scheduled_for), asc(db.DeferredMessage.created_at)
            ).all()
            return [_to_deferred(row) for row in rows]

    def find_due_pending(self, now: datetime) -> List[DueMessage]:
        with self.db_engine.session_scope() as session:
            rows = (
                session.query(db.DeferredMessage)
                .options(joinedload(db.DeferredMessage.webhook))
                .filter(
                    db.DeferredMessage.status == DeferredStatus.PENDING.value,
                    db.DeferredMessage.scheduled_for <= now,
                )
                .order_by(
                    asc(db.DeferredMessage.scheduled_for),
                    asc(db.DeferredMessage.created_at),
                )
                .all()
            )
            return [
                DueMessage(message=_to_deferred(row), target=_to_target(row.webhook))
                for row in rows
            ]

    # Message log

    def append_message_log(self, entry: MessageLogEntry) -> MessageLogEntry:
        with self.db_engine.session_scope() as session:
            row = db.MessageLog(
                id=entry.id,
                webhook_id=entry.webhook_id,
                content=entry.content,
                status=entry.status.value,
                status_code=entry.status_code,
                error_message=entry.error_message,
                source=entry.source.value,
                source_id=entry.source_id,
            )
            if entry.sent_at is not None:
                row.sent_at = entry.sent_at
            session.add(row)
            session.flush()
            return _to_log(row)

    def get_message_log(self, entry_id: str) -> Optional[MessageLogEntry]:
        with self.db_engine.session_scope() as session:
            row = session.get(db.MessageLog, entry_id)
            return _to_log(row) if row else None

    def list_message_logs(
        self, webhook_id: str, limit: int, before: Optional[datetime] = None
    ) -> Tuple[List[MessageLogEntry], bool]:
        with self.db_engine.session_scope() as session:
            query = session.query(db.MessageLog).filter(db.MessageLog.webhook_id == webhook_id)
            if before is not None:
                query = query.filter(db.MessageLog.sent_at < before)
            # Fetch one extra row to learn whether another page exists
            rows = query.order_by(desc(db.MessageLog.sent_at)).limit(limit + 1).all()

        has_more = len(rows) > limit
        return [_to_log(row) for row in rows[:limit]], has_more
