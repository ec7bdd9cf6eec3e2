"""Reorder a time-ordered stream within a trailing window."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from typing import Any, AsyncIterable, AsyncIterator, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def reorder_within_window(
    source: AsyncIterable[T],
    key: Callable[[T], Any],
    window: float,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> AsyncIterator[T]:
    """
    Yield items of source sorted by key, tolerating out-of-order arrival.

    Items are buffered in a priority queue. Every `window` seconds the queue is
    drained from the head while the head item arrived more than `window`
    seconds ago. When source completes, everything left is emitted in key
    order. Items already emitted are never reconsidered.

    Use functools.cmp_to_key to sort with a comparator.
    """
    if window <= 0:
        raise ValueError("window must be > 0")

    heap: list[tuple[Any, int, float, T]] = []
    counter = itertools.count()
    finished = asyncio.Event()

    async def _pump() -> None:
        try:
            async for item in source:
                heapq.heappush(heap, (key(item), next(counter), clock(), item))
        finally:
            finished.set()

    pump = asyncio.create_task(_pump())
    try:
        while not finished.is_set():
            try:
                await asyncio.wait_for(finished.wait(), timeout=window)
            except asyncio.TimeoutError:
                pass

            if finished.is_set():
                break

            cutoff = clock() - window
            while heap and heap[0][2] < cutoff:
                yield heapq.heappop(heap)[3]

        # Propagate a source failure before draining.
        await pump

        logger.debug("Source completed; draining %d buffered item(s)", len(heap))
        while heap:
            yield heapq.heappop(heap)[3]
    finally:
        if not pump.done():
            pump.cancel()
            try:
                await pump
            except asyncio.CancelledError:
                pass
