"""Staleness-aware cache for one externally supplied reading."""
from __future__ import annotations

import logging
from typing import Callable

from ..errors import ExternalFailure, InvalidInput, Stale
from ..fixed_point import WAD
from ..interfaces.clock import Clock
from ..models import Deviation, PriceQuote, Reading

logger = logging.getLogger(__name__)


def _zero() -> int:
    return 0


class StalenessCache:
    """Holds current, last-good and last-update for one logical reading.

    Reads go through a fixed fallback chain: the current value while it is
    younger than ``threshold``, then the last accepted value, then the
    caller-supplied ``default``. No bounds are applied to accepted values;
    an update that moves more than ``max_deviation`` (wad fraction of the
    previous value) only produces a ``Deviation`` signal.
    """

    def __init__(
        self,
        threshold: int,
        clock: Clock,
        default: Callable[[], int] | None = None,
        max_deviation: int = 0,
        name: str = "",
    ) -> None:
        if threshold <= 0:
            raise ValueError("Staleness threshold must be positive")
        self.threshold = threshold
        self.name = name
        self._clock = clock
        self._default = default or _zero
        self._max_deviation = max_deviation
        self._current = 0
        self._last_good = 0
        self._last_update: int | None = None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update(self, value: int) -> Deviation | None:
        """Accept a new non-zero value."""
        self.validate(value)
        previous = self._current
        self._current = value
        self._last_good = value
        self._last_update = self._clock.now()
        return self._check_deviation(previous, value)

    def validate(self, value: int) -> None:
        if value <= 0:
            raise InvalidInput(f"{self.name or 'reading'}: value must be positive, got {value}")

    def _check_deviation(self, previous: int, value: int) -> Deviation | None:
        if self._max_deviation <= 0 or previous == 0:
            return None
        deviation = abs(value - previous) * WAD // previous
        if deviation <= self._max_deviation:
            return None
        logger.warning(
            "%s moved %.2f%% (%d -> %d), above the %.2f%% deviation limit",
            self.name or "reading",
            deviation * 100 / WAD,
            previous,
            value,
            self._max_deviation * 100 / WAD,
        )
        return Deviation(
            name=self.name,
            previous=previous,
            value=value,
            deviation=deviation,
            max_deviation=self._max_deviation,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def is_fresh(self) -> bool:
        if self._last_update is None:
            return False
        return self._clock.now() - self._last_update < self.threshold

    def read(self) -> int:
        """Return the current value, or raise ``Stale``."""
        if not self.is_fresh():
            raise Stale(
                f"{self.name or 'reading'}: last update at {self._last_update}, "
                f"threshold {self.threshold}s"
            )
        return self._current

    def read_with_fallback(self) -> int:
        """Return the best usable value. Never raises."""
        if self.is_fresh():
            return self._current
        if self._last_good != 0:
            logger.debug("%s stale, using last good value", self.name or "reading")
            return self._last_good
        logger.warning("%s has no data, using system default", self.name or "reading")
        try:
            return self._default()
        except ExternalFailure as e:
            logger.error("%s system default unavailable: %s", self.name or "reading", e)
            return 0

    def quote(self) -> PriceQuote:
        fresh = self.is_fresh()
        return PriceQuote(value=self._current if fresh else self.read_with_fallback(), fresh=fresh)

    def snapshot(self) -> Reading:
        return Reading(
            current=self._current,
            last_good=self._last_good,
            last_update=self._last_update,
        )

    # ------------------------------------------------------------------
    # Transactional
    # ------------------------------------------------------------------

    def state(self) -> Reading:
        return self.snapshot()

    def restore(self, state: Reading) -> None:
        self._current = state.current
        self._last_good = state.last_good
        self._last_update = state.last_update
