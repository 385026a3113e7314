"""Static file HTTP server entrypoint."""

import logging
import signal
import sys

from server.bootstrap.config import (
    ADDRESS_PROMPT,
    build_config,
    parse_cli_args,
    read_ipv4_address,
)
from server.bootstrap.logging_setup import configure_logging
from server.bootstrap.socket_factory import ServerBindError
from server.domain.connection_id import ConnectionLoggerAdapter
from server.lifecycle.state import ServerLifecycle
from server.transport.accept_loop import run_server

SERVER_LOGGER = ConnectionLoggerAdapter(logging.getLogger("http_server.server"), {})


def _resolve_host(host):
    if host:
        return host
    print(ADDRESS_PROMPT, flush=True)
    return read_ipv4_address(sys.stdin)


def main() -> None:
    """Start the HTTP server and spawn a worker thread per connection."""
    args = parse_cli_args(sys.argv[1:])
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )

    try:
        host = _resolve_host(args.host)
    except ValueError as error:
        SERVER_LOGGER.error(str(error), extra={"event": "invalid_address"})
        sys.exit(2)

    config = build_config(args, host)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            f"Received shutdown signal {signum}", extra={"event": "signal"}
        )
        lifecycle.request_stop()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": config.host,
            "port": config.port,
            "directory": config.directory,
            "max_workers": config.max_workers,
        },
    )
    try:
        run_server(config, lifecycle)
    except ServerBindError as error:
        SERVER_LOGGER.critical(str(error), extra={"event": "server_failed"})
        sys.exit(1)


if __name__ == "__main__":
    main()
