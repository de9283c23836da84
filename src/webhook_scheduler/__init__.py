"""Webhook Scheduler - recurring and deferred Discord webhook delivery."""

__version__ = "1.0.0"
