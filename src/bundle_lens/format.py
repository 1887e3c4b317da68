"""Human-readable sizes."""

from __future__ import annotations

_UNITS = ("B", "KB", "MB", "GB")


def format_bytes(size: int | float) -> str:
    """Format a byte count with base-1024 units.

    `B` and `KB` are shown without decimals, `MB` and `GB` with three.
    """

    if not size:
        return "0 B"

    unit_index = 0
    value = float(size)
    while value >= 1024 and unit_index < len(_UNITS) - 1:
        value /= 1024
        unit_index += 1

    decimals = 0 if unit_index < 2 else 3
    return f"{value:.{decimals}f} {_UNITS[unit_index]}"
