"""REST API for webhook, schedule, template and message management."""

from .app import create_app

__all__ = ["create_app"]
