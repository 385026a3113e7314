"""Shared HTTP type definitions and literal wire responses."""

from dataclasses import dataclass
from typing import Optional

UNDEFINED_PROTOCOL = "undefined"
SUPPORTED_PROTOCOLS = frozenset({"HTTP/1.1", UNDEFINED_PROTOCOL})

OK_STATUS = "HTTP/1.1 200 OK\r\n\r\n"
METHOD_NOT_ALLOWED = (
    "HTTP/1.1 405 Method Not Allowed\r\n\r\n"
    'Unknown request method. Allowed methods: "GET".\r\n'
)
UNKNOWN_PROTOCOL = "Unknown protocol."


@dataclass(frozen=True)
class RequestLine:
    """Tokens extracted from the first line of a request."""

    method: Optional[str] = None
    path: Optional[str] = None
    protocol: Optional[str] = None


def parse_request_line(raw: bytes) -> RequestLine:
    """Parse ``METHOD SP PATH SP PROTOCOL`` from the start of ``raw``.

    The parse is best-effort: an empty first line yields no tokens, and a
    line without a protocol token reports the ``undefined`` sentinel so the
    request can still be served.
    """
    first_line = raw.split(b"\n", 1)[0].rstrip(b"\r")
    tokens = first_line.decode("utf-8", errors="replace").split()
    if not tokens:
        return RequestLine()
    method = tokens[0]
    path = tokens[1] if len(tokens) > 1 else None
    protocol = tokens[2] if len(tokens) > 2 else UNDEFINED_PROTOCOL
    return RequestLine(method, path, protocol)
