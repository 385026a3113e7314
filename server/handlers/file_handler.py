"""Static file serving for GET requests."""

import logging
from pathlib import Path

from server.bootstrap.config import INDEX_DOCUMENT
from server.domain.connection_id import ConnectionLoggerAdapter
from server.domain.http_types import OK_STATUS
from server.domain.sandbox import ForbiddenPath, resolve_static_path
from server.pipeline.io import RequestReader

FILE_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("http_server.handlers.file"), {}
)


def _send_file(reader: RequestReader, file_path: Path) -> None:
    """Send the 200 status line followed by the whole file."""
    payload = file_path.read_bytes()
    reader.respond_string(OK_STATUS)
    reader.respond_data(payload)
    FILE_LOGGER.info(
        "File served",
        extra={
            "event": "file_served",
            "path": file_path.as_posix(),
            "bytes_out": len(payload),
        },
    )


def index_response(reader: RequestReader, directory: str) -> None:
    """Serve the root index document, which must exist."""
    FILE_LOGGER.info("Requesting root page", extra={"event": "index_requested"})
    _send_file(reader, Path(directory) / INDEX_DOCUMENT)


def handle_get(reader: RequestReader, directory: str) -> None:
    """Serve the requested file from the static root.

    Paths that do not resolve to something under the root get no response
    at all. Read failures on a file that just resolved propagate to the
    worker.
    """
    path = reader.path
    if path is None:
        FILE_LOGGER.info("No path provided", extra={"event": "path_missing"})
        return

    sub_path = path[1:] if path.startswith("/") else path
    if not sub_path:
        index_response(reader, directory)
        return

    try:
        resolved_path = resolve_static_path(directory, sub_path)
    except ForbiddenPath:
        FILE_LOGGER.warning(
            "Unresolvable or out-of-root path ignored",
            extra={"event": "forbidden_path", "path": path},
        )
        return
    _send_file(reader, resolved_path)
