"""
Logging setup for Reconnect.

Pretty single-line logs in development, JSON lines in production.
Everything logs under the "reconnect" namespace.
"""

import json
import logging
import sys
from datetime import datetime, timezone


def _format_timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _format_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = f"{_format_timestamp(record)} {record.levelname} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(env: str = "development", level: str = "INFO") -> logging.Logger:
    """Install a single stream handler on the "reconnect" logger."""
    logger = logging.getLogger("reconnect")
    logger.setLevel(level)

    formatter: logging.Formatter
    if env == "production":
        formatter = JsonFormatter()
    else:
        formatter = PrettyFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    # Reconfiguring replaces handlers instead of stacking duplicates
    logger.handlers = [handler]
    logger.propagate = False
    return logger
