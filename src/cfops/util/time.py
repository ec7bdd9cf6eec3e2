"""Cloud Controller timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def parse_rfc3339(value: str) -> datetime:
    """
    Parse a Cloud Controller timestamp into a tz-aware UTC datetime.

    Both API versions emit ``2016-06-08T16:41:45Z``; numeric offsets and
    fractional seconds are accepted as well. A value without an offset is
    rejected rather than guessed.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("RFC3339 value must be a non-empty string")

    s = value.strip()
    # fromisoformat accepts 'Z' only from 3.11.
    if s[-1] in "zZ":
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        raise ValueError(f"RFC3339 value has no UTC offset: {value!r}")
    return dt.astimezone(timezone.utc)


def parse_optional_rfc3339(value: object) -> Optional[datetime]:
    """Parse value when it is a valid timestamp string; anything else gives None."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return parse_rfc3339(value)
    except ValueError:
        return None
