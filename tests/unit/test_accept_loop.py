"""Unit tests for the accept loop's admission control."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from server.bootstrap.config import ServerConfig
from server.bootstrap.socket_factory import ServerBindError, create_server_socket
from server.lifecycle.state import ServerLifecycle
from server.transport.accept_loop import _handle_accepted_client, run_server
from server.transport.context import WorkerContext
from server.transport.throttle import WorkerThrottle


@pytest.fixture(name="config")
def fixture_config(tmp_path):
    """Minimal configuration for a single-worker server."""
    return ServerConfig(
        host="127.0.0.1",
        port=8080,
        directory=str(tmp_path),
        max_workers=1,
        shutdown_grace_seconds=0,
    )


@pytest.fixture(name="stopping_lifecycle")
def fixture_stopping_lifecycle():
    """Lifecycle that asks the loop to stop at the first check."""
    lifecycle = MagicMock(spec=ServerLifecycle)
    lifecycle.should_stop.return_value = True
    lifecycle.wait_for_workers.return_value = True
    return lifecycle


def _context(config, throttle):
    return WorkerContext(directory=config.directory, throttle=throttle, config=config)


def test_saturated_throttle_drops_connection_without_bytes(config, caplog):
    """A connection beyond the worker limit is closed and never written to."""
    caplog.set_level(logging.INFO, logger="http_server")
    throttle = WorkerThrottle(1)
    assert throttle.try_acquire()
    client_sock = MagicMock()

    with patch("server.transport.accept_loop.threading.Thread") as thread_cls:
        _handle_accepted_client(
            client_sock, ("127.0.0.1", 5000), _context(config, throttle)
        )

    thread_cls.assert_not_called()
    client_sock.close.assert_called_once()
    client_sock.sendall.assert_not_called()
    client_sock.send.assert_not_called()
    assert throttle.active == 1
    assert any(
        getattr(r, "event", None) == "worker_limit_reached" for r in caplog.records
    )


def test_admitted_connection_spawns_worker_with_slot(config):
    """An admitted connection takes a slot and starts a named worker thread."""
    throttle = WorkerThrottle(1)
    client_sock = MagicMock()
    context = _context(config, throttle)

    with patch("server.transport.accept_loop.threading.Thread") as thread_cls:
        _handle_accepted_client(client_sock, ("127.0.0.1", 5000), context)

    thread_cls.assert_called_once()
    kwargs = thread_cls.call_args.kwargs
    assert kwargs["args"] == (client_sock, context)
    assert kwargs["name"] == "ClientHandler"
    thread_cls.return_value.start.assert_called_once()
    assert throttle.active == 1


def test_spawn_failure_releases_slot_and_drops_connection(config, caplog):
    """If the worker thread cannot start the slot is returned."""
    caplog.set_level(logging.INFO, logger="http_server")
    throttle = WorkerThrottle(1)
    client_sock = MagicMock()

    with patch("server.transport.accept_loop.threading.Thread") as thread_cls:
        thread_cls.return_value.start.side_effect = RuntimeError("can't start")
        _handle_accepted_client(
            client_sock, ("127.0.0.1", 5000), _context(config, throttle)
        )

    assert throttle.active == 0
    client_sock.close.assert_called_once()
    client_sock.sendall.assert_not_called()
    assert any(getattr(r, "event", None) == "spawn_failed" for r in caplog.records)


def test_run_server_skips_accept_errors(config, caplog):
    """Accept failures are logged and the loop keeps going."""
    caplog.set_level(logging.INFO, logger="http_server")
    lifecycle = MagicMock(spec=ServerLifecycle)
    lifecycle.should_stop.side_effect = [False, False, True]

    with patch("server.transport.accept_loop.create_server_socket") as mock_create:
        server_sock = MagicMock()
        server_sock.accept.side_effect = [
            OSError("accept failed"),
            OSError("accept failed again"),
            TimeoutError("poll"),
        ]
        mock_create.return_value = server_sock
        run_server(config, lifecycle)

    accept_errors = [
        r for r in caplog.records if getattr(r, "event", None) == "accept_error"
    ]
    assert len(accept_errors) == 2
    server_sock.close.assert_called_once()
    lifecycle.wait_for_workers.assert_called_once()


def test_run_server_logs_startup_banner(config, stopping_lifecycle, caplog):
    """The listening banner names the bound address."""
    caplog.set_level(logging.INFO, logger="http_server")

    with patch("server.transport.accept_loop.create_server_socket") as mock_create:
        server_sock = MagicMock()
        server_sock.accept.side_effect = TimeoutError("poll")
        mock_create.return_value = server_sock
        run_server(config, stopping_lifecycle)

    banner = next(
        r for r in caplog.records if getattr(r, "event", None) == "server_listening"
    )
    assert "HTTP Server running on 127.0.0.1:8080" in banner.getMessage()
    assert banner.max_workers == 1


def test_run_server_hands_connections_to_workers(config, stopping_lifecycle):
    """Each accepted socket goes through admission before the next accept."""
    client_sock = MagicMock()

    with patch(
        "server.transport.accept_loop.create_server_socket"
    ) as mock_create, patch(
        "server.transport.accept_loop._handle_accepted_client"
    ) as handle:
        server_sock = MagicMock()
        server_sock.accept.side_effect = [
            (client_sock, ("127.0.0.1", 4000)),
            TimeoutError("poll"),
        ]
        mock_create.return_value = server_sock
        run_server(config, stopping_lifecycle)

    handle.assert_called_once()
    assert handle.call_args.args[0] is client_sock


def test_bind_failure_raises_server_bind_error(config):
    """An address that cannot be bound is fatal."""
    with patch(
        "server.bootstrap.socket_factory.socket.create_server",
        side_effect=OSError(98, "Address already in use"),
    ):
        with pytest.raises(ServerBindError):
            create_server_socket(config)


def test_wait_for_workers_times_out_while_slots_held():
    """Shutdown waiting gives up when workers never finish."""
    throttle = WorkerThrottle(1)
    assert throttle.try_acquire()
    assert ServerLifecycle().wait_for_workers(throttle, 0.1) is False
    throttle.release()
    assert ServerLifecycle().wait_for_workers(throttle, 0.1) is True


def test_request_stop_sets_flag():
    """Stopping is a one-way flag."""
    lifecycle = ServerLifecycle()
    assert not lifecycle.should_stop()
    lifecycle.request_stop()
    assert lifecycle.should_stop()
