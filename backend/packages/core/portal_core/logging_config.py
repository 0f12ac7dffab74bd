"""
Logging configuration.

Standard-library logging with structured ``extra`` fields rendered either as
JSON (for log aggregation) or as ``key=value`` suffixes for development.

Usage:
    from portal_core import get_logger

    logger = get_logger(__name__)
    logger.info("OAuth login completed", extra={"provider": "google"})
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

# Attributes present on every LogRecord; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

SENSITIVE_FIELDS = (
    "token",
    "secret",
    "password",
    "authorization",
    "state",
    "cookie",
    "session",
)


def mask_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Mask values whose key looks like a credential."""
    masked: dict[str, Any] = {}
    for key, value in data.items():
        if any(marker in key.lower() for marker in SENSITIVE_FIELDS):
            masked[key] = "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive(value)
        else:
            masked[key] = value
    return masked


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = {
        key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS
    }
    return mask_sensitive(fields)


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter with extras appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s [%(name)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = _extra_fields(record)
        if fields:
            message += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return message


def init_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name.
        json_output: Emit JSON lines instead of text.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else TextFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Request lines from httpx would leak query strings carrying codes.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)
