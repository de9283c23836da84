"""Trigger engines for recurring schedules and deferred one-off sends."""

from .deferred import DeferredSendEngine
from .recurring import RecurringScheduleEngine
from .ticker import ScheduleTicker

__all__ = ["RecurringScheduleEngine", "DeferredSendEngine", "ScheduleTicker"]
