"""Server configuration and CLI argument parsing."""

import argparse
import ipaddress
import os
from dataclasses import dataclass
from typing import Optional, TextIO


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    return value if value else default


DEFAULT_PORT = _env_int("HTTP_SERVER_PORT", 80)
DEFAULT_DIRECTORY = _env_str("HTTP_SERVER_DIRECTORY", "./static")
DEFAULT_MAX_WORKERS = _env_int("HTTP_SERVER_MAX_WORKERS", 128)
DEFAULT_MAX_REQUEST_BYTES = _env_int("HTTP_SERVER_MAX_REQUEST_BYTES", 1024 * 1024)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("HTTP_SERVER_SHUTDOWN_GRACE_SECONDS", 5)
DEFAULT_LOG_DESTINATION = "logs/http.log"

READ_TIMEOUT_SECONDS = 0.1
ACCEPT_POLL_SECONDS = 0.5
INDEX_DOCUMENT = "index.html"
ADDRESS_PROMPT = 'Please enter private address in the form "a.b.c.d"'


@dataclass
class ServerConfig:
    """Runtime settings shared by the accept loop and its workers."""

    host: str
    port: int
    directory: str
    max_workers: int
    max_request_bytes: int = DEFAULT_MAX_REQUEST_BYTES
    read_timeout: float = READ_TIMEOUT_SECONDS
    shutdown_grace_seconds: int = DEFAULT_SHUTDOWN_GRACE_SECONDS


def read_ipv4_address(stream: TextIO) -> str:
    """Read one line from the stream and validate it as a dotted IPv4 address."""
    line = stream.readline()
    try:
        return str(ipaddress.IPv4Address(line.strip()))
    except ipaddress.AddressValueError as exc:
        raise ValueError(f"Invalid IPv4 address: {line.strip()!r}") from exc


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Static file HTTP server")
    parser.add_argument(
        "--host",
        default=_env_str("HTTP_SERVER_HOST", None),
        help="IPv4 address to bind (prompted on stdin when omitted)",
    )
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--directory",
        default=DEFAULT_DIRECTORY,
        help="Static root containing index.html",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Maximum concurrent connection workers (0 for unlimited)",
    )
    parser.add_argument(
        "--max-request-bytes",
        type=int,
        default=DEFAULT_MAX_REQUEST_BYTES,
        help="Upper bound on bytes read from a single connection",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for in-flight workers on shutdown",
    )
    default_log_level = os.getenv("HTTP_SERVER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv(
        "HTTP_SERVER_LOG_DESTINATION", DEFAULT_LOG_DESTINATION
    )
    default_format = os.getenv("HTTP_SERVER_LOG_FORMAT", "text").lower()
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="Log file mirrored to stdout, or 'stdout' for console only",
    )
    parser.add_argument(
        "--log-format",
        default=default_format,
        choices=["text", "json"],
        type=str.lower,
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, host: str) -> ServerConfig:
    """Assemble the runtime configuration from parsed arguments."""
    return ServerConfig(
        host=host,
        port=args.port,
        directory=args.directory,
        max_workers=args.max_workers,
        max_request_bytes=args.max_request_bytes,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
    )
