"""Server configuration with CLI args, environment variables, and defaults."""

from dataclasses import dataclass, fields
from typing import Optional

from .base import EnvVars, get_bool_config_value, get_config_value


@dataclass
class Config:
    """Application configuration."""

    # === Database ===
    db_path: str = "./data/webhook_scheduler.db"
    retention_days: int = 0  # 0 keeps history forever
    cleanup_interval_hours: int = 24

    # === Scheduling ===
    timezone: str = "UTC"
    tick_enabled: bool = True
    tick_interval_seconds: float = 60.0

    # === Delivery ===
    delivery_timeout: float = 10.0

    # === API ===
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_title: str = "Webhook Scheduler"
    api_version: str = "1.0.0"

    # === Prometheus ===
    metrics_enabled: bool = True

    # === Logging ===
    log_level: str = "INFO"
    log_format: str = "json"  # json|text

    @classmethod
    def from_args_and_env(cls, cli_args: Optional[dict] = None) -> "Config":
        """
        Load configuration from CLI arguments, environment variables, and defaults.

        Priority: CLI args > Environment variables > Defaults

        Args:
            cli_args: Optional dictionary of CLI arguments keyed by field name

        Returns:
            Config instance
        """
        args = cli_args or {}
        config = cls()

        # Database
        config.db_path = get_config_value(args.get("db_path"), EnvVars.DB_PATH, config.db_path)
        config.retention_days = get_config_value(
            args.get("retention_days"), EnvVars.RETENTION_DAYS, config.retention_days, int
        )
        config.cleanup_interval_hours = get_config_value(
            args.get("cleanup_interval_hours"),
            EnvVars.CLEANUP_INTERVAL_HOURS,
            config.cleanup_interval_hours,
            int,
        )

        # Scheduling
        config.timezone = get_config_value(args.get("timezone"), EnvVars.TIMEZONE, config.timezone)
        config.tick_enabled = get_bool_config_value(
            args.get("tick_enabled"), EnvVars.TICK_ENABLED, config.tick_enabled
        )
        config.tick_interval_seconds = get_config_value(
            args.get("tick_interval_seconds"),
            EnvVars.TICK_INTERVAL_SECONDS,
            config.tick_interval_seconds,
            float,
        )

        # Delivery
        config.delivery_timeout = get_config_value(
            args.get("delivery_timeout"), EnvVars.DELIVERY_TIMEOUT, config.delivery_timeout, float
        )

        # API
        config.api_host = get_config_value(args.get("api_host"), EnvVars.API_HOST, config.api_host)
        config.api_port = get_config_value(
            args.get("api_port"), EnvVars.API_PORT, config.api_port, int
        )
        config.api_title = get_config_value(
            args.get("api_title"), EnvVars.API_TITLE, config.api_title
        )
        config.api_version = get_config_value(
            args.get("api_version"), EnvVars.API_VERSION, config.api_version
        )

        # Metrics
        config.metrics_enabled = get_bool_config_value(
            args.get("metrics"), EnvVars.METRICS_ENABLED, config.metrics_enabled
        )

        # Logging
        config.log_level = get_config_value(
            args.get("log_level"), EnvVars.LOG_LEVEL, config.log_level
        ).upper()
        config.log_format = get_config_value(
            args.get("log_format"), EnvVars.LOG_FORMAT, config.log_format
        ).lower()

        return config

    def display(self) -> str:
        """Return the resolved configuration as a human-readable block."""
        lines = ["Configuration:"]
        for f in fields(self):
            lines.append(f"  {f.name}: {getattr(self, f.name)}")
        return "\n".join(lines)
