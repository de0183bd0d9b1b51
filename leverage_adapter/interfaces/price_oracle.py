"""Price oracle protocol — off-chain price source polled by the feed keeper."""
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for fetching asset prices in display units."""

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, float]: ...
