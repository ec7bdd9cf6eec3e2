"""Pool of reusable byte buffers shared by concurrent hashing operations."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

logger = logging.getLogger(__name__)


class BufferPool:
    """
    Thread-safe pool of fixed-capacity bytearrays.

    Notes:
        - The pool is unbounded: checkout creates a buffer when none is idle.
        - Idle buffers older than ttl are evicted by sweep(), either called
          directly or from the background thread started by start().
        - Construct one per process (or per test) and stop() it at shutdown.
    """

    def __init__(
        self,
        capacity: int = 8192,
        *,
        ttl: float = 60.0,
        sweep_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        if ttl <= 0:
            raise ValueError("ttl must be > 0")

        self.capacity = capacity
        self.ttl = ttl
        self.sweep_interval = sweep_interval if sweep_interval is not None else ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._idle: list[tuple[bytearray, float]] = []
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @contextmanager
    def checkout(self) -> Iterator[bytearray]:
        """Borrow a buffer for the duration of the with-block."""
        buffer = self._acquire()
        try:
            yield buffer
        finally:
            self._release(buffer)

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    def sweep(self) -> int:
        """Evict idle buffers older than ttl. Returns the number evicted."""
        cutoff = self._clock() - self.ttl
        with self._lock:
            kept = [(b, t) for b, t in self._idle if t >= cutoff]
            evicted = len(self._idle) - len(kept)
            self._idle = kept
        if evicted:
            logger.debug("Evicted %d idle buffer(s)", evicted)
        return evicted

    def start(self) -> None:
        """Start the background sweeper thread (idempotent)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="cfops-buffer-pool-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the sweeper thread and drop every idle buffer."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        with self._lock:
            self._idle.clear()

    def __enter__(self) -> "BufferPool":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _acquire(self) -> bytearray:
        with self._lock:
            if self._idle:
                return self._idle.pop()[0]
        return bytearray(self.capacity)

    def _release(self, buffer: bytearray) -> None:
        with self._lock:
            self._idle.append((buffer, self._clock()))

    def _run(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            self.sweep()
