from __future__ import annotations

_UNITS: tuple[str, ...] = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")


def as_ibi(size: int) -> str:
    """Format a byte count with binary prefixes, e.g. 1536 -> '1.5 KiB'."""
    if size < 0:
        raise ValueError("size must be >= 0")
    if size < 1024:
        return f"{size} B"

    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {_UNITS[unit]}"
