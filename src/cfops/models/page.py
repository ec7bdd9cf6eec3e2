"""Paginated response model and dialect parsers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """
    One page of a listing.

    Notes:
        - Page numbering is 1-based.
        - total_pages is always >= 1.
    """

    resources: list[T] = field(default_factory=list)
    total_pages: int = 1

    def __post_init__(self) -> None:
        self.total_pages = normalize_total_pages(self.total_pages)


def normalize_total_pages(total_pages: Optional[int]) -> int:
    """Return total_pages, or 1 when missing or less than 1."""
    if not isinstance(total_pages, int) or total_pages < 1:
        return 1
    return total_pages


def total_pages_from_counts(total_results: Optional[int], per_page: Optional[int]) -> int:
    """Derive a page count from result counts: ceil(total_results / per_page)."""
    if not isinstance(total_results, int) or not isinstance(per_page, int) or per_page < 1:
        return 1
    return normalize_total_pages(math.ceil(total_results / per_page))


def _identity(data: Any) -> Any:
    return data


def page_from_v2(
    payload: dict[str, Any],
    parse: Callable[[dict[str, Any]], T] = _identity,
) -> Page[T]:
    """Parse a v2 listing: ``{total_results, total_pages, resources}``."""
    resources = [parse(r) for r in payload.get("resources") or []]
    return Page(resources=resources, total_pages=payload.get("total_pages"))  # type: ignore[arg-type]


def page_from_v3(
    payload: dict[str, Any],
    parse: Callable[[dict[str, Any]], T] = _identity,
) -> Page[T]:
    """Parse a v3 listing: ``{pagination: {total_results, total_pages}, resources}``."""
    resources = [parse(r) for r in payload.get("resources") or []]
    pagination = payload.get("pagination") or {}
    return Page(resources=resources, total_pages=pagination.get("total_pages"))


def page_from_counts(
    payload: dict[str, Any],
    parse: Callable[[dict[str, Any]], T] = _identity,
    *,
    per_page_key: str = "itemsPerPage",
    total_key: str = "totalResults",
) -> Page[T]:
    """Parse a listing that reports counts instead of a page total (UAA style)."""
    resources = [parse(r) for r in payload.get("resources") or []]
    total_pages = total_pages_from_counts(payload.get(total_key), payload.get(per_page_key))
    return Page(resources=resources, total_pages=total_pages)
