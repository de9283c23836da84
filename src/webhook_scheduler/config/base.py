"""Shared configuration utilities and constants.

This module provides the foundation for consistent configuration handling
across all commands (server, tick, status).
"""

import os
from typing import Any, Optional, TypeVar

# Type variable for config values
T = TypeVar("T")

# === Environment Variable Prefix ===
# All environment variables use this prefix for consistency

ENV_PREFIX = "WEBHOOK_SCHEDULER_"


class EnvVars:
    """Centralized environment variable names for consistent access."""

    # === Database ===
    DB_PATH = f"{ENV_PREFIX}DB_PATH"
    RETENTION_DAYS = f"{ENV_PREFIX}RETENTION_DAYS"
    CLEANUP_INTERVAL_HOURS = f"{ENV_PREFIX}CLEANUP_INTERVAL_HOURS"

    # === Scheduling ===
    TIMEZONE = f"{ENV_PREFIX}TIMEZONE"
    TICK_ENABLED = f"{ENV_PREFIX}TICK_ENABLED"
    TICK_INTERVAL_SECONDS = f"{ENV_PREFIX}TICK_INTERVAL_SECONDS"

    # === Delivery ===
    DELIVERY_TIMEOUT = f"{ENV_PREFIX}DELIVERY_TIMEOUT"

    # === API ===
    API_HOST = f"{ENV_PREFIX}API_HOST"
    API_PORT = f"{ENV_PREFIX}API_PORT"
    API_TITLE = f"{ENV_PREFIX}API_TITLE"
    API_VERSION = f"{ENV_PREFIX}API_VERSION"

    # === Metrics ===
    METRICS_ENABLED = f"{ENV_PREFIX}METRICS_ENABLED"

    # === Logging ===
    LOG_LEVEL = f"{ENV_PREFIX}LOG_LEVEL"
    LOG_FORMAT = f"{ENV_PREFIX}LOG_FORMAT"


def get_env_value(
    env_var: str,
    default: T,
    type_converter: type = str,
) -> T:
    """
    Get a value from an environment variable with type conversion.

    Args:
        env_var: Environment variable name
        default: Default value if not found
        type_converter: Type to convert to (str, int, float, bool)

    Returns:
        The environment value converted to the specified type, or the default
    """
    env_value = os.getenv(env_var)

    if env_value is not None:
        if type_converter == bool:
            return env_value.lower() in ("true", "1", "yes", "on")  # type: ignore
        return type_converter(env_value)

    return default


def get_config_value(
    cli_arg: Optional[Any],
    env_var: str,
    default: T,
    type_converter: type = str,
) -> T:
    """
    Get a configuration value with priority: CLI > Environment > Default.

    Args:
        cli_arg: CLI argument value (highest priority)
        env_var: Environment variable name
        default: Default value (lowest priority)
        type_converter: Type to convert to (str, int, float, bool)

    Returns:
        The resolved configuration value
    """
    # CLI arguments take highest priority
    if cli_arg is not None:
        return cli_arg

    return get_env_value(env_var, default, type_converter)


def get_bool_config_value(
    cli_flag: Optional[bool],
    env_var: str,
    default: bool,
) -> bool:
    """
    Get a boolean configuration value from a tri-state CLI flag.

    Click ``--feature/--no-feature`` options yield None when neither flag was
    given, in which case the environment variable and then the default apply.

    Args:
        cli_flag: CLI flag value (True, False or None)
        env_var: Environment variable name
        default: Default value

    Returns:
        The resolved boolean value
    """
    if cli_flag is not None:
        return bool(cli_flag)

    return get_env_value(env_var, default, bool)
