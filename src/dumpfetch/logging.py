"""
Logging helpers for dumpfetch.

Every module logs through get_logger(__name__), which places the logger
under the "dumpfetch" namespace. setup_logging() is called by the CLI;
library users may configure the namespace themselves instead.
"""

from __future__ import annotations

import json
import logging
import sys

ROOT_LOGGER_NAME = "dumpfetch"


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the dumpfetch namespace."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str | None = None, json_format: bool | None = None) -> logging.Logger:
    """
    Configure the dumpfetch namespace logger.

    Args:
        level: Log level name. Defaults to settings.log_level.
        json_format: Emit JSON lines. Defaults to settings.log_json.

    Returns:
        The configured namespace logger.
    """
    from dumpfetch.config import get_settings

    settings = get_settings()
    level = level or settings.log_level
    if json_format is None:
        json_format = settings.log_json

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


__all__ = ["JsonFormatter", "get_logger", "setup_logging", "ROOT_LOGGER_NAME"]
