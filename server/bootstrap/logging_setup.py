"""Logging configuration utilities for the HTTP server."""

import json
import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from server.domain.connection_id import ConnectionLoggerAdapter

LOGGER_NAME = "http_server"
LOG_FORMAT = (
    "[%(asctime)s UTC] %(filename)s:%(lineno)d: %(levelname)s "
    "[%(connection_id)s] %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5


class ConnectionIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Ensure the connection_id field exists in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "connection_id"):
            record.connection_id = "-"
        return True


class UtcFormatter(logging.Formatter):
    """Plain text formatter stamping records in UTC."""

    converter = time.gmtime


class JsonFormatter(logging.Formatter):
    """JSON formatter with stable key ordering for structured logging."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "location": f"{record.filename}:{record.lineno}",
            "connection_id": getattr(record, "connection_id", "-"),
            "component": getattr(record, "component", "unknown"),
            "message": record.getMessage(),
        }

        extra_keys = [
            "event",
            "client",
            "method",
            "path",
            "protocol",
            "active_workers",
            "max_workers",
            "bytes_out",
            "host",
            "port",
            "directory",
            "error_type",
        ]
        for key in extra_keys:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, sort_keys=True, default=str)


def _resolve_level(level_name: str) -> int:
    """Translate text level names into logging module numeric levels."""
    level = getattr(logging, level_name.upper(), None)
    if isinstance(level, int):
        return level
    return logging.INFO


def _build_formatter(use_json: bool) -> logging.Formatter:
    if use_json:
        return JsonFormatter(datefmt=DATE_FORMAT)
    return UtcFormatter(LOG_FORMAT, DATE_FORMAT)


def _build_file_handler(destination: str) -> Optional[logging.Handler]:
    """Open the append-only log file, or return None when it cannot be opened."""
    target_path = Path(destination)
    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            target_path, mode="a", maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT
        )
    except OSError as error:
        print(
            f"Unable to open log file {destination}: {error}; logging to stdout only",
            file=sys.stderr,
        )
        return None


def _build_handlers(destination: Optional[str]) -> list[logging.Handler]:
    """Create the console handler plus the mirrored file handler when configured."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if destination and destination.lower() != "stdout":
        file_handler = _build_file_handler(destination)
        if file_handler is not None:
            handlers.append(file_handler)
    return handlers


def configure_logging(
    level: str = "INFO", destination: Optional[str] = None, use_json: bool = False
) -> ConnectionLoggerAdapter:
    """Configure and return the project logger with console and file output."""
    logger = logging.getLogger(LOGGER_NAME)
    numeric_level = _resolve_level(level)
    logger.setLevel(numeric_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = _build_formatter(use_json)
    for handler in _build_handlers(destination):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        handler.addFilter(ConnectionIdFilter())
        logger.addHandler(handler)
    return ConnectionLoggerAdapter(logger, {})
