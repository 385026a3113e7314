"""Listening socket creation."""

import logging
import socket

from server.bootstrap.config import ACCEPT_POLL_SECONDS, ServerConfig
from server.domain.connection_id import ConnectionLoggerAdapter

SOCKET_LOGGER = ConnectionLoggerAdapter(logging.getLogger("http_server.socket"), {})


class ServerBindError(OSError):
    """Raised when the listening socket cannot be bound."""


def create_server_socket(config: ServerConfig) -> socket.socket:
    """Bind an IPv4 listening socket polled at a short accept timeout."""
    try:
        server_socket = socket.create_server(
            (config.host, config.port), family=socket.AF_INET
        )
    except OSError as error:
        SOCKET_LOGGER.critical(
            "Failed to bind listening socket",
            extra={
                "event": "bind_failed",
                "host": config.host,
                "port": config.port,
                "error_type": type(error).__name__,
            },
        )
        raise ServerBindError(
            f"Cannot bind {config.host}:{config.port}: {error}"
        ) from error
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
