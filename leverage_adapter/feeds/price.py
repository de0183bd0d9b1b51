"""Off-chain price feed — one staleness cache per priced asset."""
from __future__ import annotations

import logging
from typing import Callable, Iterable

from ..auth import Capability, Role, require
from ..errors import InvalidInput
from ..interfaces.clock import Clock
from ..models import Deviation, PriceQuote, Reading
from .cache import StalenessCache

logger = logging.getLogger(__name__)

DeviationListener = Callable[[Deviation], None]


class PriceFeed:
    """Prices pushed by a single authorized submitter."""

    def __init__(
        self,
        assets: Iterable[str],
        threshold: int,
        clock: Clock,
        default: Callable[[str], int] | None = None,
        max_deviation: int = 0,
    ) -> None:
        self.submitter = Capability(Role.SUBMITTER, issuer="price-feed")
        self._listeners: list[DeviationListener] = []
        self._caches: dict[str, StalenessCache] = {}
        for asset in assets:
            asset_default = (lambda a=asset: default(a)) if default else None
            self._caches[asset] = StalenessCache(
                threshold,
                clock,
                default=asset_default,
                max_deviation=max_deviation,
                name=f"price:{asset}",
            )
        if not self._caches:
            raise ValueError("PriceFeed needs at least one asset")

    @property
    def assets(self) -> tuple[str, ...]:
        return tuple(self._caches)

    def _cache(self, asset: str) -> StalenessCache:
        try:
            return self._caches[asset]
        except KeyError:
            raise InvalidInput(f"Unknown price feed asset '{asset}'") from None

    def on_deviation(self, listener: DeviationListener) -> None:
        self._listeners.append(listener)

    def submit(self, capability: Capability, asset: str, price: int) -> Deviation | None:
        require(capability, self.submitter)
        deviation = self._cache(asset).update(price)
        logger.info("Price for %s updated to %d", asset, price)
        if deviation is not None:
            for listener in self._listeners:
                listener(deviation)
        return deviation

    def read(self, asset: str) -> int:
        return self._cache(asset).read()

    def read_with_fallback(self, asset: str) -> int:
        return self._cache(asset).read_with_fallback()

    def quote(self, asset: str) -> PriceQuote:
        return self._cache(asset).quote()

    def reading(self, asset: str) -> Reading:
        return self._cache(asset).snapshot()

    def quoter(self, asset: str) -> Callable[[], PriceQuote]:
        """Bind ``quote`` to one asset, for consumers that price a single asset."""
        cache = self._cache(asset)
        return cache.quote
