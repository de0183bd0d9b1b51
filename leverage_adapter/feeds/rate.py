"""Off-chain interest-rate feed — one staleness cache per collateral class."""
from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..auth import Capability, Role, require
from ..errors import InvalidInput
from ..interfaces.clock import Clock
from ..interfaces.lending_protocol import AggregateSource
from ..models import Deviation, PriceQuote, Reading
from .cache import StalenessCache

logger = logging.getLogger(__name__)

DeviationListener = Callable[[Deviation], None]


class RateFeed:
    """Average market rates per collateral class, pushed by one submitter.

    When a class has no usable reading the fallback is the debt-weighted
    average rate across every aggregate source, recomputed on each call.
    """

    def __init__(
        self,
        class_count: int,
        threshold: int,
        clock: Clock,
        aggregates: Sequence[AggregateSource],
        safety_buffer: int = 0,
        max_deviation: int = 0,
    ) -> None:
        if class_count <= 0:
            raise ValueError("RateFeed needs at least one collateral class")
        self.submitter = Capability(Role.SUBMITTER, issuer="rate-feed")
        self.safety_buffer = safety_buffer
        self._aggregates = list(aggregates)
        self._listeners: list[DeviationListener] = []
        self._caches = [
            StalenessCache(
                threshold,
                clock,
                default=self.system_average_rate,
                max_deviation=max_deviation,
                name=f"rate:{index}",
            )
            for index in range(class_count)
        ]

    @property
    def class_count(self) -> int:
        return len(self._caches)

    def _cache(self, class_index: int) -> StalenessCache:
        if not 0 <= class_index < len(self._caches):
            raise InvalidInput(
                f"Collateral class {class_index} out of range 0..{len(self._caches) - 1}"
            )
        return self._caches[class_index]

    def on_deviation(self, listener: DeviationListener) -> None:
        self._listeners.append(listener)

    def _emit(self, deviations: list[Deviation]) -> None:
        for deviation in deviations:
            for listener in self._listeners:
                listener(deviation)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update(self, capability: Capability, class_index: int, rate: int) -> Deviation | None:
        deviations = self.update_many(capability, [class_index], [rate])
        return deviations[0] if deviations else None

    def update_many(
        self,
        capability: Capability,
        class_indices: Sequence[int],
        rates: Sequence[int],
    ) -> list[Deviation]:
        """Apply a batch of ``(class, rate)`` pairs, all or nothing.

        The whole batch is validated before any cache is touched.
        """
        require(capability, self.submitter)
        if len(class_indices) != len(rates):
            raise InvalidInput(
                f"Batch length mismatch: {len(class_indices)} classes, {len(rates)} rates"
            )
        caches = [self._cache(index) for index in class_indices]
        for cache, rate in zip(caches, rates):
            cache.validate(rate)

        deviations: list[Deviation] = []
        for cache, rate in zip(caches, rates):
            deviation = cache.update(rate)
            if deviation is not None:
                deviations.append(deviation)
        if class_indices:
            logger.info("Rates updated for classes %s", list(class_indices))
        self._emit(deviations)
        return deviations

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(self, class_index: int) -> int:
        return self._cache(class_index).read()

    def read_with_fallback(self, class_index: int) -> int:
        return self._cache(class_index).read_with_fallback()

    def quote(self, class_index: int) -> PriceQuote:
        return self._cache(class_index).quote()

    def reading(self, class_index: int) -> Reading:
        return self._cache(class_index).snapshot()

    def get_optimal_rate(self, class_index: int) -> int:
        """Observed market rate plus the fixed safety buffer."""
        return self.read_with_fallback(class_index) + self.safety_buffer

    def system_average_rate(self) -> int:
        """Debt-weighted average rate: ``Σ weighted_debt // Σ debt``."""
        total_debt = 0
        total_weighted = 0
        for source in self._aggregates:
            total_debt += source.aggregate_debt()
            total_weighted += source.aggregate_weighted_debt_sum()
        if total_debt == 0:
            return 0
        return total_weighted // total_debt
