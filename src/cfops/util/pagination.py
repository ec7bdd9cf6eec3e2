"""Pagination driver: turns a page fetcher into one ordered stream of resources."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from cfops.models.page import Page

T = TypeVar("T")

logger = logging.getLogger(__name__)

PageFetcher = Callable[[int], Awaitable[Page[T]]]


async def all_pages(fetch_page: PageFetcher[T]) -> AsyncIterator[T]:
    """
    Yield every resource across all pages, in page order then in-page order.

    Page 1 is fetched first to learn total_pages; pages 2..total_pages are then
    fetched sequentially. Errors from any fetch propagate and end the stream.
    Re-invoke to restart.
    """
    first = await fetch_page(1)
    total_pages = first.total_pages
    logger.debug("Listing has %d page(s)", total_pages)

    for resource in first.resources:
        yield resource

    for page_number in range(2, total_pages + 1):
        page = await fetch_page(page_number)
        for resource in page.resources:
            yield resource


async def collect(source: AsyncIterator[T]) -> list[T]:
    """Drain an async iterator into a list."""
    return [item async for item in source]
