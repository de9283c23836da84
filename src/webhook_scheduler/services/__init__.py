"""Management services used by the HTTP API and CLI."""

from .messages import MessageHistoryPage, MessageService
from .schedules import ScheduleService
from .targets import TargetService
from .templates import TemplateService

__all__ = [
    "MessageHistoryPage",
    "MessageService",
    "ScheduleService",
    "TargetService",
    "TemplateService",
]
