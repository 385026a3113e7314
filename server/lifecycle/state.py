"""Server lifecycle state management."""

import logging
import threading
import time

from server.domain.connection_id import ConnectionLoggerAdapter
from server.transport.throttle import WorkerThrottle

LIFECYCLE_LOGGER = ConnectionLoggerAdapter(
    logging.getLogger("http_server.lifecycle"), {}
)

WORKER_POLL_SECONDS = 0.05


class ServerLifecycle:
    """Stop flag for the accept loop and shutdown wait on in-flight workers."""

    def __init__(self) -> None:
        self._stop_event = threading.Event()

    def should_stop(self) -> bool:
        """Check if the accept loop should stop taking connections."""
        return self._stop_event.is_set()

    def request_stop(self) -> None:
        """Signal the accept loop to stop after its current poll."""
        self._stop_event.set()
        LIFECYCLE_LOGGER.info("Stop requested", extra={"event": "stop_requested"})

    def wait_for_workers(self, throttle: WorkerThrottle, timeout: float) -> bool:
        """Wait until no worker holds a throttle slot or the timeout elapses."""
        deadline = time.monotonic() + timeout
        while throttle.active:
            if time.monotonic() >= deadline:
                LIFECYCLE_LOGGER.warning(
                    "Shutdown timeout exceeded",
                    extra={
                        "event": "shutdown_timeout",
                        "active_workers": throttle.active,
                    },
                )
                return False
            time.sleep(WORKER_POLL_SECONDS)
        return True
