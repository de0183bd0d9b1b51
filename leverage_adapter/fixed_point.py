"""18-decimal fixed-point helpers — pure functions, no I/O."""
from __future__ import annotations

from decimal import Decimal

WAD = 10**18

SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def to_wad(value: float | int | str | Decimal) -> int:
    """Convert a human-readable number to wad, rounding down.

    Floats go through ``str`` first so that ``0.1`` becomes exactly
    ``10**17`` rather than its binary approximation.

    Examples:
        1.1 → 1_100_000_000_000_000_000
        "2000" → 2_000 * 10**18
    """
    if isinstance(value, float):
        value = str(value)
    return int(Decimal(value) * WAD)


def from_wad(value: int) -> Decimal:
    """Convert a wad integer back to a Decimal for display."""
    return Decimal(value) / WAD


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute ``a * b // denominator`` without intermediate rounding."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div by zero")
    return a * b // denominator


def collateral_ratio(collateral: int, debt: int, price: int) -> int | None:
    """Collateral value over debt, in wad. ``None`` when there is no debt."""
    if debt <= 0:
        return None
    return collateral * price // debt


def format_wad(value: int, places: int = 4) -> str:
    """Render a wad integer with a fixed number of decimal places."""
    return f"{from_wad(value):,.{places}f}"
