"""Per-connection identifiers for log correlation using contextvars."""

import contextvars
import itertools
import logging
from typing import Any, MutableMapping, Optional

_connection_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "connection_id", default=None
)
_connection_counter = itertools.count(1)


def next_connection_id() -> str:
    """Return the next sequential connection identifier."""
    return f"conn-{next(_connection_counter)}"


def get_connection_id() -> Optional[str]:
    """Retrieve the connection ID bound to the current thread context."""
    return _connection_id_var.get()


def set_connection_id(connection_id: str) -> None:
    """Bind a connection ID to the current thread context."""
    _connection_id_var.set(connection_id)


def clear_connection_id() -> None:
    """Remove the connection ID from the current context."""
    _connection_id_var.set(None)


class ConnectionLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that tags records with the connection ID and component."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        connection_id = get_connection_id()
        extra["connection_id"] = connection_id if connection_id is not None else "-"

        logger_name = self.logger.name
        if logger_name.startswith("http_server."):
            extra["component"] = logger_name[len("http_server.") :]
        else:
            extra["component"] = logger_name
        kwargs["extra"] = extra
        return msg, kwargs
