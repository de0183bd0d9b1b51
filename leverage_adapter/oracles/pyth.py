"""Pyth Network (Hermes) price source for the feed keeper."""
from __future__ import annotations

import logging
import ssl
import time
from typing import Any

import aiohttp
import certifi

from ..config import PythConfig

logger = logging.getLogger(__name__)


def normalize_feed_id(feed_id: str) -> str:
    """Hermes returns feed ids without the ``0x`` prefix, lower-case."""
    feed_id = feed_id.lower()
    return feed_id[2:] if feed_id.startswith("0x") else feed_id


def parse_hermes_prices(
    data: dict[str, Any],
    feeds: dict[str, str],
    max_age: int = 0,
    now: int | None = None,
) -> dict[str, float]:
    """Map a Hermes ``parsed`` payload onto configured asset symbols.

    Entries whose ``publish_time`` is older than ``max_age`` seconds are
    dropped; ``max_age == 0`` disables the age check.
    """
    id_to_assets: dict[str, list[str]] = {}
    for asset, feed_id in feeds.items():
        id_to_assets.setdefault(normalize_feed_id(feed_id), []).append(asset)

    now = int(time.time()) if now is None else now
    prices: dict[str, float] = {}
    for item in data.get("parsed", []):
        feed_id = normalize_feed_id(str(item.get("id", "")))
        assets = id_to_assets.get(feed_id)
        if not assets:
            continue

        price_data = item.get("price", {})
        publish_time = int(price_data.get("publish_time", now))
        if max_age and now - publish_time > max_age:
            logger.warning(
                "Pyth price for %s is %ds old, skipping", ", ".join(assets), now - publish_time
            )
            continue

        price = int(price_data.get("price", 0)) * (10 ** int(price_data.get("expo", 0)))
        for asset in assets:
            prices[asset] = price
    return prices


class PythOracle:
    """Fetch prices from the Pyth Hermes REST endpoint."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self.timeout = config.timeout
        self.max_age = config.max_age

    def _build_url(self, feeds: dict[str, str]) -> str:
        feed_ids = sorted({normalize_feed_id(fid) for fid in feeds.values()})
        query_params = "&".join(f"ids[]={fid}" for fid in feed_ids)
        return f"{self.hermes_url}?{query_params}"

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, float]:
        """Fetch current prices from Pyth Network.

        Args:
            symbols: Optional list of symbols to fetch. If None, fetches all
                     configured feeds.
        """
        feeds = self.price_feeds
        if symbols is not None:
            feeds = {k: v for k, v in self.price_feeds.items() if k in symbols}
        if not feeds:
            return {}

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    self._build_url(feeds),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return {}
                    data = await response.json()
        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return {}

        prices = parse_hermes_prices(data, feeds, self.max_age)
        for asset, price in sorted(prices.items()):
            logger.info("Pyth %s: $%.4f", asset, price)
        return prices
