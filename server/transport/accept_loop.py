"""Main connection acceptance loop."""

import logging
import socket
import threading

from server.bootstrap.config import ServerConfig
from server.bootstrap.socket_factory import create_server_socket
from server.domain.connection_id import ConnectionLoggerAdapter
from server.lifecycle.state import ServerLifecycle
from server.transport.context import WorkerContext
from server.transport.throttle import WorkerThrottle
from server.transport.worker import handle_connection

ACCEPT_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("http_server.transport.accept"), {}
)


def _drop_connection(client_socket: socket.socket) -> None:
    """Close an unadmitted connection without writing anything."""
    try:
        client_socket.close()
    except OSError:
        pass


def _handle_accepted_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Admit the connection to a worker thread or drop it when saturated."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": client_addr_str},
        )

    throttle = context.throttle
    if not throttle.try_acquire():
        ACCEPT_LOGGER.warning(
            "Worker limit reached, connection dropped",
            extra={
                "event": "worker_limit_reached",
                "client": client_addr_str,
                "max_workers": throttle.max_workers,
            },
        )
        _drop_connection(client_socket)
        return

    thread = threading.Thread(
        target=handle_connection,
        args=(client_socket, context),
        name="ClientHandler",
        daemon=False,
    )
    try:
        thread.start()
    except RuntimeError as error:
        ACCEPT_LOGGER.error(
            "Failed to spawn thread",
            extra={
                "event": "spawn_failed",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
        throttle.release()
        _drop_connection(client_socket)


def run_server(config: ServerConfig, lifecycle: ServerLifecycle) -> None:
    """Bind the listening socket and hand each connection to a worker."""

    server_socket = create_server_socket(config)

    ACCEPT_LOGGER.info(
        "==================== HTTP Server running on "
        f"{config.host}:{config.port} ====================",
        extra={
            "event": "server_listening",
            "host": config.host,
            "port": config.port,
            "directory": config.directory,
            "max_workers": config.max_workers,
        },
    )

    throttle = WorkerThrottle(config.max_workers)
    context = WorkerContext(
        directory=config.directory,
        throttle=throttle,
        config=config,
    )

    try:
        while True:
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                if lifecycle.should_stop():
                    break
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            _handle_accepted_client(client_socket, client_address, context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={"event": "shutdown_waiting", "active_workers": throttle.active},
        )
        lifecycle.wait_for_workers(throttle, config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info(
            "Server shutdown complete", extra={"event": "server_stopped"}
        )
