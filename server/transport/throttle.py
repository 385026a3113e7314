"""Worker concurrency throttling."""

import threading
from contextlib import contextmanager
from typing import Iterator


class WorkerThrottle:
    """Bounded count of in-flight connection workers.

    Slots are taken with a non-blocking ``try_acquire`` at accept time and
    given back exactly once when the worker finishes.
    """

    def __init__(self, max_workers: int) -> None:
        self._max_workers = max(0, max_workers)
        self._lock = threading.Lock()
        self._active = 0

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    def try_acquire(self) -> bool:
        """Take a slot if one is free; never blocks."""
        with self._lock:
            if self._max_workers and self._active >= self._max_workers:
                return False
            self._active += 1
            return True

    def release(self) -> None:
        """Return a previously acquired slot."""
        with self._lock:
            if self._active > 0:
                self._active -= 1

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Hold an already acquired slot for the duration of the block."""
        try:
            yield
        finally:
            self.release()
