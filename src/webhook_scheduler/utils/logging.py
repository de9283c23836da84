"""Log formatting for the scheduler process.

Two output styles are supported: one JSON object per line for log shippers,
and a compact coloured line for terminals. Both carry any ``extra=`` fields
attached to a record, so calls like
``logger.info("Fired", extra={"schedule_id": sid})`` stay searchable.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Tuple

_STANDARD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_PACKAGE_PREFIX = "webhook_scheduler."

# Libraries that log every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def _extra_fields(record: logging.LogRecord) -> Iterator[Tuple[str, Any]]:
    for key, value in record.__dict__.items():
        if key not in _STANDARD_FIELDS and not key.startswith("_"):
            yield key, value


def _component(logger_name: str) -> str:
    """Shorten ``webhook_scheduler.engines.recurring`` to ``engines.recurring``."""
    if logger_name.startswith(_PACKAGE_PREFIX):
        return logger_name[len(_PACKAGE_PREFIX):]
    return logger_name


class JSONFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "component": _component(record.name),
            "message": record.getMessage(),
        }
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines, coloured by level when writing to a TTY."""

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and record.levelno in _LEVEL_COLORS:
            level = f"{_LEVEL_COLORS[record.levelno]}{level}{_RESET}"

        line = (
            f"{self.formatTime(record, self.datefmt)} {level:<8} "
            f"{_component(record.name)}: {record.getMessage()}"
        )
        extras = " ".join(f"{key}={value}" for key, value in _extra_fields(record))
        if extras:
            line = f"{line} [{extras}]"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", format_type: str = "json") -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'json' or 'text'
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    if format_type.lower() == "text":
        handler.setFormatter(TextFormatter())
    else:
        handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
