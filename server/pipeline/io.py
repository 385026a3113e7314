"""Raw socket request reading and response writing."""

import logging
import socket
from typing import Optional

from server.bootstrap.config import DEFAULT_MAX_REQUEST_BYTES
from server.domain.connection_id import ConnectionLoggerAdapter
from server.domain.http_types import RequestLine, parse_request_line

IO_LOGGER = ConnectionLoggerAdapter(logging.getLogger("http_server.io"), {})

RECV_CHUNK_BYTES = 4096


class RequestReader:
    """Accumulates the bytes of one request and parses its request line once.

    Every ``recv`` is bounded by the timeout already set on the socket, so
    reads end on timeout, EOF, a connection error, or the byte cap.
    """

    def __init__(
        self,
        client_socket: socket.socket,
        max_request_bytes: int = DEFAULT_MAX_REQUEST_BYTES,
    ) -> None:
        self._socket = client_socket
        self._max_request_bytes = max_request_bytes
        self._buffer = bytearray()
        self._request_line: Optional[RequestLine] = None
        self._exhausted = False

    @property
    def raw(self) -> bytes:
        return bytes(self._buffer)

    @property
    def request_line(self) -> RequestLine:
        """Read until the first line terminator and parse it, caching the result."""
        if self._request_line is None:
            while b"\n" not in self._buffer and self._read_chunk():
                pass
            self._request_line = parse_request_line(bytes(self._buffer))
            IO_LOGGER.debug(
                "Request line parsed",
                extra={
                    "event": "request_line_parsed",
                    "method": self._request_line.method,
                    "path": self._request_line.path,
                    "protocol": self._request_line.protocol,
                },
            )
        return self._request_line

    @property
    def method(self) -> Optional[str]:
        return self.request_line.method

    @property
    def path(self) -> Optional[str]:
        return self.request_line.path

    @property
    def protocol(self) -> Optional[str]:
        return self.request_line.protocol

    def read_all(self) -> bytes:
        """Drain the remaining inbound bytes so closing does not reset the peer."""
        while self._read_chunk():
            pass
        return self.raw

    def _read_chunk(self) -> bool:
        """Append one chunk to the buffer; return False once reading should stop."""
        if self._exhausted:
            return False
        if self._max_request_bytes and len(self._buffer) >= self._max_request_bytes:
            IO_LOGGER.warning(
                "Request exceeded read limit, remaining bytes ignored",
                extra={"event": "read_limit_reached"},
            )
            self._exhausted = True
            return False
        try:
            chunk = self._socket.recv(RECV_CHUNK_BYTES)
        except socket.timeout:
            return False
        except OSError as error:
            IO_LOGGER.debug(
                "Socket read failed",
                extra={"event": "read_error", "error_type": type(error).__name__},
            )
            self._exhausted = True
            return False
        if not chunk:
            self._exhausted = True
            return False
        self._buffer.extend(chunk)
        return True

    def respond_string(self, text: str) -> bool:
        """Write a literal status line or body string to the client."""
        return self.respond_data(text.encode())

    def respond_data(self, data: bytes) -> bool:
        """Write raw bytes to the client; failures are logged and ignored."""
        try:
            self._socket.sendall(data)
        except OSError as error:
            IO_LOGGER.debug(
                "Socket write failed",
                extra={"event": "write_error", "error_type": type(error).__name__},
            )
            return False
        return True

    def __str__(self) -> str:
        return self._buffer.decode("utf-8", errors="replace")
