"""SQLAlchemy database models for webhooks, schedules and message history."""

import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime stored as naive UTC.

    SQLite has no timezone support, so values are normalized to UTC on the way
    in and tagged as UTC on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Webhook(Base):
    """A Discord webhook target."""

    __tablename__ = "webhooks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    success_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fail_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow, onupdate=_utcnow)

    schedules: Mapped[List["WebhookSchedule"]] = relationship(
        back_populates="webhook", cascade="all, delete-orphan", passive_deletes=True
    )
    deferred_messages: Mapped[List["DeferredMessage"]] = relationship(
        back_populates="webhook", cascade="all, delete-orphan", passive_deletes=True
    )
    message_logs: Mapped[List["MessageLog"]] = relationship(
        back_populates="webhook", cascade="all, delete-orphan", passive_deletes=True
    )


class WebhookSchedule(Base):
    """A recurring message definition; the policy is flattened into nullable columns."""

    __tablename__ = "webhook_schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    webhook_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("webhooks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    message_content: Mapped[Optional[str]] = mapped_column(Text)
    embed_data: Mapped[Optional[dict]] = mapped_column(JSON)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    schedule_type: Mapped[str] = mapped_column(String(16), nullable=False)  # interval/daily/weekly
    interval_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    schedule_time: Mapped[Optional[str]] = mapped_column(String(5))  # HH:mm
    schedule_days: Mapped[Optional[list]] = mapped_column(JSON)  # [0-6], 0=Sunday
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_triggered_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    next_trigger_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    success_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fail_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow, onupdate=_utcnow)

    webhook: Mapped[Webhook] = relationship(back_populates="schedules")

    __table_args__ = (Index("idx_schedules_due", "is_active", "next_trigger_at"),)


class Template(Base):
    """Reusable schedule content and policy."""

    __tablename__ = "templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    message_content: Mapped[Optional[str]] = mapped_column(Text)
    embed_data: Mapped[Optional[dict]] = mapped_column(JSON)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    schedule_type: Mapped[str] = mapped_column(String(16), nullable=False, default="daily")
    interval_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    schedule_time: Mapped[Optional[str]] = mapped_column(String(5))
    schedule_days: Mapped[Optional[list]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow, onupdate=_utcnow)


class DeferredMessage(Base):
    """A one-off message scheduled for a future time."""

    __tablename__ = "deferred_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    webhook_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("webhooks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)  # pending/sent/cancelled
    scheduled_for: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow)
    sent_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    outcome: Mapped[Optional[str]] = mapped_column(String(16))  # success/failed
    status_code: Mapped[Optional[int]] = mapped_column(Integer)
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    webhook: Mapped[Webhook] = relationship(back_populates="deferred_messages")

    __table_args__ = (Index("idx_deferred_due", "status", "scheduled_for", "created_at"),)


class MessageLog(Base):
    """Append-only history of delivery attempts."""

    __tablename__ = "message_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    webhook_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("webhooks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)  # success/failed
    status_code: Mapped[Optional[int]] = mapped_column(Integer)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    source: Mapped[str] = mapped_column(String(16), nullable=False, default="manual")
    source_id: Mapped[Optional[str]] = mapped_column(String(36))
    sent_at: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow, index=True)

    webhook: Mapped[Webhook] = relationship(back_populates="message_logs")
