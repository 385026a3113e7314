"""Worker thread logic for handling individual client connections."""

import logging
import socket
from typing import Optional

from server.domain.connection_id import (
    ConnectionLoggerAdapter,
    clear_connection_id,
    next_connection_id,
    set_connection_id,
)
from server.domain.http_types import SUPPORTED_PROTOCOLS, UNKNOWN_PROTOCOL
from server.pipeline.io import RequestReader
from server.pipeline.router import dispatch_request, method_not_allowed
from server.transport.context import WorkerContext

WORKER_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("http_server.transport.worker"), {}
)


def _peer_address(client_socket: socket.socket) -> Optional[str]:
    try:
        host, port = client_socket.getpeername()[:2]
    except (OSError, ValueError):
        return None
    return f"{host}:{port}"


def _process_request(
    reader: RequestReader, client: Optional[str], context: WorkerContext
) -> bool:
    """Validate the request line and dispatch it.

    Returns False when the connection carried no request line at all, in
    which case there is nothing to drain or log.
    """
    protocol = reader.protocol
    if protocol is None:
        WORKER_LOGGER.info(
            "Client provided no protocol.",
            extra={"event": "protocol_missing", "client": client},
        )
        return False

    if protocol not in SUPPORTED_PROTOCOLS:
        WORKER_LOGGER.info(
            f'Client used invalid protocol: "{protocol}"',
            extra={"event": "protocol_rejected", "client": client},
        )
        reader.respond_string(UNKNOWN_PROTOCOL)
        return True

    method = reader.method
    if method is None:
        WORKER_LOGGER.info("No method provided", extra={"event": "method_missing"})
        method_not_allowed(reader)
        return True

    if client is not None:
        WORKER_LOGGER.info(
            f"Client {client} made a {method} request",
            extra={"event": "request_received", "client": client, "method": method},
        )
    else:
        WORKER_LOGGER.info(
            f"Client made a {method} request",
            extra={"event": "request_received", "method": method},
        )
    dispatch_request(reader, method, context.directory)
    return True


def _close_socket(client_socket: socket.socket) -> None:
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    client_socket.close()


def handle_connection(client_socket: socket.socket, context: WorkerContext) -> None:
    """Serve one request on the socket, then release the worker's throttle slot.

    The caller must have acquired the slot before starting this worker.
    """
    with context.throttle.slot():
        set_connection_id(next_connection_id())
        client = None
        try:
            others = context.throttle.active - 1
            WORKER_LOGGER.info(
                f"{others} Thread(s) active.",
                extra={"event": "worker_started", "active_workers": others},
            )
            client = _peer_address(client_socket)
            client_socket.settimeout(context.config.read_timeout)
            reader = RequestReader(client_socket, context.config.max_request_bytes)
            if _process_request(reader, client, context):
                reader.read_all()
                WORKER_LOGGER.info(
                    f"{reader}\n", extra={"event": "request_complete", "client": client}
                )
        except Exception as error:  # pylint: disable=broad-except
            WORKER_LOGGER.error(
                "Worker terminated abnormally",
                extra={
                    "event": "worker_error",
                    "client": client,
                    "error_type": type(error).__name__,
                },
                exc_info=True,
            )
        finally:
            _close_socket(client_socket)
            clear_connection_id()
