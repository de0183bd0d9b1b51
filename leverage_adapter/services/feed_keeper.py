"""Feed keeper — pushes off-chain prices and rates into the feeds."""
from __future__ import annotations

import logging

from ..auth import Capability
from ..errors import InvalidInput
from ..feeds.price import PriceFeed
from ..feeds.rate import RateFeed
from ..fixed_point import to_wad
from ..interfaces.price_oracle import PriceOracle
from ..models import Deviation

logger = logging.getLogger(__name__)


class FeedKeeper:
    """Submitter for the price and rate feeds.

    Prices are polled from a ``PriceOracle``; missing or non-positive prices
    are logged and skipped so one bad symbol does not block the others.
    Rate batches are submitted as a single all-or-nothing update.
    """

    def __init__(
        self,
        oracle: PriceOracle,
        price_feed: PriceFeed,
        price_submitter: Capability,
        rate_feed: RateFeed | None = None,
        rate_submitter: Capability | None = None,
    ) -> None:
        self._oracle = oracle
        self._price_feed = price_feed
        self._price_submitter = price_submitter
        self._rate_feed = rate_feed
        self._rate_submitter = rate_submitter

    async def push_prices(self) -> dict[str, int]:
        """Fetch prices for every feed asset and submit them. Returns what was pushed."""
        assets = list(self._price_feed.assets)
        prices = await self._oracle.fetch_prices(assets)
        pushed: dict[str, int] = {}

        for asset in assets:
            price = prices.get(asset)
            if price is None:
                logger.warning("No oracle price for %s, keeping cached value", asset)
                continue
            if price <= 0:
                logger.warning("Oracle returned non-positive price %s for %s", price, asset)
                continue
            value = to_wad(price)
            self._price_feed.submit(self._price_submitter, asset, value)
            pushed[asset] = value

        logger.info("Pushed %d of %d prices", len(pushed), len(assets))
        return pushed

    def push_rates(self, rates: dict[int, float]) -> list[Deviation]:
        """Submit ``{class_index: annual_rate}`` as one batch."""
        if self._rate_feed is None or self._rate_submitter is None:
            raise InvalidInput("Keeper has no rate feed configured")
        indices = sorted(rates)
        values = [to_wad(rates[i]) for i in indices]
        return self._rate_feed.update_many(self._rate_submitter, indices, values)
