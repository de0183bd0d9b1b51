"""Unit tests for the price feed — submitter capability and per-asset caches."""
from __future__ import annotations

import pytest

from leverage_adapter.auth import Capability, Role
from leverage_adapter.errors import InvalidInput, Stale, Unauthorized
from leverage_adapter.feeds.price import PriceFeed
from leverage_adapter.fixed_point import WAD


@pytest.fixture()
def feed(clock) -> PriceFeed:
    return PriceFeed(["WETH", "WBTC"], 60, clock, max_deviation=WAD // 20)


class TestPriceFeedSubmit:
    def test_submit_and_read(self, feed: PriceFeed) -> None:
        feed.submit(feed.submitter, "WETH", 2000 * WAD)
        assert feed.read("WETH") == 2000 * WAD

    def test_assets_are_independent(self, feed: PriceFeed) -> None:
        feed.submit(feed.submitter, "WETH", 2000 * WAD)
        with pytest.raises(Stale):
            feed.read("WBTC")

    def test_foreign_capability_rejected(self, feed: PriceFeed) -> None:
        forged = Capability(Role.SUBMITTER, issuer="price-feed")
        with pytest.raises(Unauthorized):
            feed.submit(forged, "WETH", 2000 * WAD)
        assert feed.reading("WETH").last_update is None

    def test_unknown_asset(self, feed: PriceFeed) -> None:
        with pytest.raises(InvalidInput):
            feed.submit(feed.submitter, "DOGE", WAD)
        with pytest.raises(InvalidInput):
            feed.read_with_fallback("DOGE")

    def test_zero_price_rejected(self, feed: PriceFeed) -> None:
        with pytest.raises(InvalidInput):
            feed.submit(feed.submitter, "WETH", 0)

    def test_same_value_same_second_is_idempotent(self, feed: PriceFeed) -> None:
        feed.submit(feed.submitter, "WETH", 2000 * WAD)
        first = feed.reading("WETH")
        feed.submit(feed.submitter, "WETH", 2000 * WAD)
        assert feed.reading("WETH") == first

    def test_needs_an_asset(self, clock) -> None:
        with pytest.raises(ValueError):
            PriceFeed([], 60, clock)


class TestPriceFeedFallback:
    def test_depeg_is_reported_not_clamped(self, feed: PriceFeed, clock) -> None:
        feed.submit(feed.submitter, "WETH", 2000 * WAD)
        feed.submit(feed.submitter, "WETH", 900 * WAD)
        clock.advance(3600)
        assert feed.read_with_fallback("WETH") == 900 * WAD

    def test_default_per_asset(self, clock) -> None:
        defaults = {"WETH": 1, "WBTC": 2}
        feed = PriceFeed(["WETH", "WBTC"], 60, clock, default=defaults.__getitem__)
        assert feed.read_with_fallback("WETH") == 1
        assert feed.read_with_fallback("WBTC") == 2

    def test_quoter_binds_asset(self, feed: PriceFeed, clock) -> None:
        quote = feed.quoter("WETH")
        feed.submit(feed.submitter, "WETH", 3 * WAD)
        assert quote().value == 3 * WAD
        assert quote().fresh is True
        clock.advance(60)
        assert quote().fresh is False


class TestPriceFeedDeviation:
    def test_listener_called_on_large_move(self, feed: PriceFeed) -> None:
        seen = []
        feed.on_deviation(seen.append)
        feed.submit(feed.submitter, "WETH", 2000 * WAD)
        feed.submit(feed.submitter, "WETH", 2050 * WAD)
        assert seen == []
        feed.submit(feed.submitter, "WETH", 2500 * WAD)
        assert len(seen) == 1
        assert seen[0].name == "price:WETH"
        assert feed.read("WETH") == 2500 * WAD
