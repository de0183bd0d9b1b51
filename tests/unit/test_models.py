"""Unit tests for data models, position handles and fixed-point helpers."""
from __future__ import annotations

from decimal import Decimal

import pytest

from leverage_adapter.auth import Capability, Role, require
from leverage_adapter.errors import Unauthorized
from leverage_adapter.fixed_point import (
    WAD,
    collateral_ratio,
    format_wad,
    from_wad,
    mul_div,
    to_wad,
)
from leverage_adapter.models import (
    POSITION_NUMBER_BITS,
    PriceQuote,
    RatePreference,
    RecordSnapshot,
    RecordStatus,
    encode_position,
    position_key,
)


class TestPositionHandles:
    def test_key_is_position_number(self) -> None:
        assert position_key(encode_position(5, 12)) == 12

    def test_instrument_in_high_bits(self) -> None:
        assert encode_position(3, 1) >> POSITION_NUMBER_BITS == 3

    def test_distinct_instruments_same_number_share_key(self) -> None:
        assert position_key(encode_position(1, 9)) == position_key(encode_position(2, 9))

    def test_number_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            encode_position(1, 0)


class TestFixedPoint:
    def test_to_wad_float_is_exact(self) -> None:
        assert to_wad(0.1) == WAD // 10
        assert to_wad(1.1) == 11 * WAD // 10

    def test_to_wad_int_and_str(self) -> None:
        assert to_wad(2000) == 2000 * WAD
        assert to_wad("0.005") == 5 * WAD // 1000

    def test_from_wad(self) -> None:
        assert from_wad(15 * WAD // 10) == Decimal("1.5")

    def test_mul_div(self) -> None:
        assert mul_div(7, 3, 2) == 10
        with pytest.raises(ZeroDivisionError):
            mul_div(1, 1, 0)

    def test_collateral_ratio(self) -> None:
        assert collateral_ratio(22 * WAD // 10, 4000 * WAD, 2000 * WAD) == 11 * WAD // 10
        assert collateral_ratio(WAD, 0, 2000 * WAD) is None

    def test_format_wad(self) -> None:
        assert format_wad(1234 * WAD + WAD // 2, 2) == "1,234.50"


class TestFrozenModels:
    def test_snapshot_frozen(self) -> None:
        snap = RecordSnapshot(
            record=1,
            owner="a",
            collateral=1,
            debt=1,
            annual_interest_rate=1,
            status=RecordStatus.ACTIVE,
        )
        with pytest.raises(AttributeError):
            snap.debt = 2  # type: ignore[misc]

    def test_preference_equality(self) -> None:
        assert RatePreference(rate=5, set_at=10) == RatePreference(rate=5, set_at=10)

    def test_quote_frozen(self) -> None:
        quote = PriceQuote(value=1, fresh=True)
        with pytest.raises(AttributeError):
            quote.fresh = False  # type: ignore[misc]


class TestCapabilities:
    def test_require_accepts_same_object(self) -> None:
        cap = Capability(Role.ADMIN, issuer="x")
        require(cap, cap)

    def test_require_rejects_lookalike(self) -> None:
        cap = Capability(Role.ADMIN, issuer="x")
        with pytest.raises(Unauthorized, match="admin"):
            require(Capability(Role.ADMIN, issuer="x"), cap)
