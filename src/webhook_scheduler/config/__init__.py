"""Configuration module for Webhook Scheduler.

Usage:
    from webhook_scheduler.config import Config
    from webhook_scheduler.config.base import EnvVars, get_config_value

All environment variables use the WEBHOOK_SCHEDULER_ prefix.
"""

from .base import (
    ENV_PREFIX,
    EnvVars,
    get_bool_config_value,
    get_config_value,
    get_env_value,
)
from .server import Config

__all__ = [
    "Config",
    "EnvVars",
    "get_config_value",
    "get_env_value",
    "get_bool_config_value",
    "ENV_PREFIX",
]
