"""Database layer for webhook, schedule and message persistence."""

from .cleanup import DataCleanup
from .engine import DatabaseEngine
from .models import (
    Base,
    DeferredMessage,
    MessageLog,
    Template,
    Webhook,
    WebhookSchedule,
)

__all__ = [
    "DatabaseEngine",
    "DataCleanup",
    "Base",
    "Webhook",
    "WebhookSchedule",
    "Template",
    "DeferredMessage",
    "MessageLog",
]
