"""Shared fixtures for unit tests."""

import logging

import pytest


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Let http_server records reach caplog even after configure_logging ran."""
    logger = logging.getLogger("http_server")
    old_propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = old_propagate


class FakeSocket:
    """Socket double that replays inbound chunks and records outbound bytes.

    Once the chunks are exhausted ``recv`` raises ``socket.timeout`` unless
    ``eof`` is set, mimicking an idle client held open past the read timeout.
    """

    def __init__(self, chunks=(), peer=("127.0.0.1", 50000), eof=False):
        self._chunks = [
            chunk if isinstance(chunk, bytes) else chunk.encode() for chunk in chunks
        ]
        self._peer = peer
        self._eof = eof
        self.sent = b""
        self.timeout = None
        self.closed = False
        self.recv_calls = 0

    def recv(self, _):
        self.recv_calls += 1
        if self._chunks:
            return self._chunks.pop(0)
        if self._eof:
            return b""
        raise TimeoutError("timed out")

    def sendall(self, data):
        self.sent += data

    def settimeout(self, value):
        self.timeout = value

    def getpeername(self):
        if self._peer is None:
            raise OSError("Transport endpoint is not connected")
        return self._peer

    def shutdown(self, _how):
        pass

    def close(self):
        self.closed = True


@pytest.fixture(name="fake_socket_factory")
def fixture_fake_socket_factory():
    """Build FakeSocket instances inside tests."""
    return FakeSocket
