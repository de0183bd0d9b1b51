"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Registry sentinel for "no record" / "no key".
UNMAPPED = 0

# The low 64 bits of a platform position handle carry the platform's global
# position number; the bits above identify the instrument.
POSITION_NUMBER_BITS = 64
POSITION_NUMBER_MASK = (1 << POSITION_NUMBER_BITS) - 1


def encode_position(instrument: int, number: int) -> int:
    """Build a platform position handle from an instrument id and a number."""
    if number <= 0 or number > POSITION_NUMBER_MASK:
        raise ValueError(f"Position number out of range: {number}")
    return (instrument << POSITION_NUMBER_BITS) | number


def position_key(position: int) -> int:
    """Registry key derived from a platform position handle."""
    return position & POSITION_NUMBER_MASK


class RecordStatus(str, Enum):
    NONEXISTENT = "nonexistent"
    ACTIVE = "active"
    CLOSED = "closed"
    ZOMBIE = "zombie"


@dataclass(frozen=True)
class RecordSnapshot:
    """Borrowing record as reported by the external protocol."""

    record: int
    owner: str
    collateral: int
    debt: int
    annual_interest_rate: int
    status: RecordStatus
    last_update: int = 0


@dataclass(frozen=True)
class PriceQuote:
    """Price (or rate) value with its freshness flag."""

    value: int
    fresh: bool


@dataclass(frozen=True)
class Reading:
    """Cached external value for one asset or collateral class."""

    current: int = 0
    last_good: int = 0
    last_update: int | None = None


@dataclass(frozen=True)
class Deviation:
    """Observability signal: an update moved further than the allowed delta."""

    name: str
    previous: int
    value: int
    deviation: int
    max_deviation: int


@dataclass(frozen=True)
class RatePreference:
    """Caller-chosen interest rate waiting for the record to be opened."""

    rate: int
    set_at: int


@dataclass(frozen=True)
class Balances:
    collateral: int
    debt: int


@dataclass(frozen=True)
class PositionView:
    """Reporting snapshot of one managed position."""

    position: int
    key: int
    record: int
    status: RecordStatus
    collateral: int
    debt: int
    price: int
    price_fresh: bool
    collateral_ratio: int | None
    min_collateral_ratio: int
    available_borrow: int
    available_lend: int | None
    interest_rate: int
    collateral_asset: str = ""
    debt_asset: str = ""
