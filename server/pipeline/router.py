"""Request method dispatch."""

import logging

from server.domain.connection_id import ConnectionLoggerAdapter
from server.domain.http_types import METHOD_NOT_ALLOWED
from server.handlers.file_handler import handle_get
from server.pipeline.io import RequestReader

ROUTER_LOGGER = ConnectionLoggerAdapter(logging.getLogger("http_server.router"), {})


def method_not_allowed(reader: RequestReader) -> None:
    """Reply with the fixed 405 response."""
    reader.respond_string(METHOD_NOT_ALLOWED)


def dispatch_request(reader: RequestReader, method: str, directory: str) -> None:
    """Route the request by its case-folded, trimmed method."""
    if method.strip().lower() == "get":
        handle_get(reader, directory)
        return
    ROUTER_LOGGER.info(
        "Invalid method, request ignored.",
        extra={"event": "method_not_allowed", "method": method},
    )
    method_not_allowed(reader)
