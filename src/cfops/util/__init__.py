from .delay import ExponentialBackoff, exponential_backoff, fixed, instant
from .lookup import expect_optional, expect_single
from .pagination import all_pages, collect
from .size import as_ibi
from .sorting import reorder_within_window
from .time import parse_optional_rfc3339, parse_rfc3339

__all__ = [
    "ExponentialBackoff",
    "exponential_backoff",
    "fixed",
    "instant",
    "expect_single",
    "expect_optional",
    "all_pages",
    "collect",
    "as_ibi",
    "reorder_within_window",
    "parse_rfc3339",
    "parse_optional_rfc3339",
]
