"""Single polling loop shared by every long-running-operation shape."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol
from urllib.parse import urlparse

from cfops.config import OperationTimeouts
from cfops.errors import (
    DelayTimeoutError,
    OperationFailedError,
    OperationTimeoutError,
    ResourceNotFoundError,
)
from cfops.util.delay import ExponentialBackoff

from .adapters import from_last_operation, from_v2_job, from_v3_job
from .status import OperationState, OperationStatus

logger = logging.getLogger(__name__)

Poll = Callable[[], Awaitable[OperationStatus]]
Adapter = Callable[[Mapping[str, Any]], OperationStatus]


class _Getter(Protocol):
    async def get(self, path: str, *, params: Optional[dict[str, Any]] = None) -> Any: ...


async def wait_for_completion(
    poll: Poll,
    *,
    timeout: float = 300.0,
    initial: Optional[OperationStatus] = None,
    deleting: bool = False,
    minimum: float = 1.0,
    maximum: float = 15.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> OperationStatus:
    """
    Poll until the operation reaches a terminal state.

    Args:
        poll: Coroutine function returning the current OperationStatus.
        timeout: Seconds until the delay schedule gives up.
        initial: Status already known from the submitting response. A terminal
            one is returned without polling.
        deleting: If True, a ResourceNotFoundError from poll counts as success.

    Returns:
        The terminal (succeeded) status.

    Raises:
        OperationFailedError: the operation failed; carries the platform detail.
        OperationTimeoutError: no terminal state before the deadline.
    """
    if initial is not None and initial.is_terminal:
        return _finish(initial)

    schedule = ExponentialBackoff(minimum, maximum, timeout, clock=clock)
    while True:
        try:
            status = await poll()
        except ResourceNotFoundError:
            if deleting:
                logger.debug("Resource gone while waiting for deletion")
                return OperationStatus.succeeded()
            raise

        logger.debug("Operation state: %s (attempt %d)", status.state.value, schedule.attempt)
        if status.is_terminal:
            return _finish(status)

        try:
            delay = next(schedule)
        except DelayTimeoutError as exc:
            raise OperationTimeoutError(
                f"Operation did not complete within {timeout}s",
                details={"timeout": timeout, "attempts": schedule.attempt},
                cause=exc,
            ) from exc
        await sleep(delay)


async def wait_for_resource(
    controller: _Getter,
    path: str,
    adapter: Adapter,
    *,
    timeouts: Optional[OperationTimeouts] = None,
    initial: Optional[Mapping[str, Any]] = None,
    deleting: bool = False,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> OperationStatus:
    """Poll GET path, mapping each payload through adapter."""
    t = timeouts or OperationTimeouts()

    async def _poll() -> OperationStatus:
        response = await controller.get(path)
        return adapter(response.payload or {})

    return await wait_for_completion(
        _poll,
        timeout=t.completion,
        initial=adapter(initial) if initial is not None else None,
        deleting=deleting,
        minimum=t.minimum_delay,
        maximum=t.maximum_delay,
        sleep=sleep,
    )


async def wait_for_job_v2(
    controller: _Getter,
    job: Mapping[str, Any],
    *,
    timeouts: Optional[OperationTimeouts] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> OperationStatus:
    """Wait for a v2 job resource returned by an ``async=true`` request."""
    guid = (job.get("metadata") or {}).get("guid")
    return await wait_for_resource(
        controller,
        f"/v2/jobs/{guid}",
        from_v2_job,
        timeouts=timeouts,
        initial=job,
        sleep=sleep,
    )


async def wait_for_job_v3(
    controller: _Getter,
    location: str,
    *,
    timeouts: Optional[OperationTimeouts] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> OperationStatus:
    """Wait for a v3 job; location is the job URL (Location header) or its guid."""
    return await wait_for_resource(
        controller,
        f"/v3/jobs/{job_id_from_location(location)}",
        from_v3_job,
        timeouts=timeouts,
        sleep=sleep,
    )


async def wait_for_last_operation(
    controller: _Getter,
    path: str,
    *,
    timeouts: Optional[OperationTimeouts] = None,
    initial: Optional[Mapping[str, Any]] = None,
    deleting: bool = False,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> OperationStatus:
    """Wait on the inline last_operation of the resource at path."""
    return await wait_for_resource(
        controller,
        path,
        from_last_operation,
        timeouts=timeouts,
        initial=initial,
        deleting=deleting,
        sleep=sleep,
    )


def job_id_from_location(location: str) -> str:
    """Return the job guid from ``https://api.../v3/jobs/<guid>`` (or a bare guid)."""
    path = urlparse(location).path if "/" in location else location
    return path.rstrip("/").rsplit("/", 1)[-1]


def _finish(status: OperationStatus) -> OperationStatus:
    if status.state is OperationState.FAILED:
        detail = status.detail
        raise OperationFailedError(
            detail.code if detail else None,
            detail.description if detail else "Operation failed",
            detail.error_code if detail else None,
        )
    return status
