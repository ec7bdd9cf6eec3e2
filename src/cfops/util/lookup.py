"""Resolve a human-readable name to exactly one resource."""

from __future__ import annotations

from typing import AsyncIterable, TypeVar

from cfops.errors import AmbiguousMatchError, NotFoundError

T = TypeVar("T")


async def expect_single(source: AsyncIterable[T], kind: str, name: str) -> T:
    """
    Return the only item of source.

    Raises:
        NotFoundError: source is empty ("<kind> <name> does not exist").
        AmbiguousMatchError: source yields more than one item.
    """
    matches = [item async for item in source]
    if not matches:
        raise NotFoundError(kind, name)
    if len(matches) > 1:
        raise AmbiguousMatchError(kind, name, len(matches))
    return matches[0]


async def expect_optional(source: AsyncIterable[T], kind: str, name: str) -> T | None:
    """Like expect_single, but an empty source gives None."""
    matches = [item async for item in source]
    if len(matches) > 1:
        raise AmbiguousMatchError(kind, name, len(matches))
    return matches[0] if matches else None
