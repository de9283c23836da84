"""Utility functions and helpers."""

from .logging import setup_logging
from .time import ensure_aware, make_clock, utc_now

__all__ = ["setup_logging", "ensure_aware", "make_clock", "utc_now"]
