"""Delay schedules for retry and polling loops."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator

from cfops.errors import DelayTimeoutError

logger = logging.getLogger(__name__)


def instant() -> Iterator[float]:
    """Yield 0 for every attempt."""
    while True:
        yield 0.0


def fixed(duration: float) -> Iterator[float]:
    """Yield the same duration (seconds) for every attempt."""
    if duration < 0:
        raise ValueError("duration must be >= 0")
    while True:
        yield duration


class ExponentialBackoff:
    """
    Exponential backoff with a ceiling, bounded by an overall deadline.

    Attempt i (0-based) waits ``min(minimum * 2**i, maximum)`` seconds. The
    deadline is fixed when the schedule is created; asking for a delay once it
    has passed raises DelayTimeoutError.

    Usage:
        schedule = ExponentialBackoff(1.0, 15.0, 300.0)
        await asyncio.sleep(next(schedule))
    """

    def __init__(
        self,
        minimum: float,
        maximum: float,
        timeout: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if minimum <= 0:
            raise ValueError("minimum must be > 0")
        if maximum < minimum:
            raise ValueError("maximum must be >= minimum")
        if timeout < 0:
            raise ValueError("timeout must be >= 0")

        self.minimum = minimum
        self.maximum = maximum
        self.timeout = timeout
        self._clock = clock
        self._deadline = clock() + timeout
        self._attempt = 0
        self._current = minimum

    @property
    def attempt(self) -> int:
        """Number of delays emitted so far."""
        return self._attempt

    def __iter__(self) -> "ExponentialBackoff":
        return self

    def __next__(self) -> float:
        now = self._clock()
        if now > self._deadline:
            raise DelayTimeoutError(
                f"Delay deadline of {self.timeout}s exceeded",
                details={"attempt": self._attempt, "timeout": self.timeout},
            )

        duration = min(self._current, self.maximum)
        logger.debug("Delay attempt %d: waiting %.3fs", self._attempt, duration)

        self._attempt += 1
        if self._current < self.maximum:
            self._current *= 2
        return duration


def exponential_backoff(
    minimum: float,
    maximum: float,
    timeout: float,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> ExponentialBackoff:
    """Create an ExponentialBackoff schedule (deadline = now + timeout)."""
    return ExponentialBackoff(minimum, maximum, timeout, clock=clock)
