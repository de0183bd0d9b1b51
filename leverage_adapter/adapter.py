"""Lending adapter — drives borrowing records on behalf of platform positions."""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from math import isqrt

from .auth import Capability
from .config import AdapterConfig
from .errors import (
    ExternalFailure,
    InvalidInput,
    InvalidState,
    InvariantViolation,
    Shutdown,
    Stale,
)
from .feeds.rate import RateFeed
from .fixed_point import collateral_ratio
from .interfaces.clock import Clock
from .interfaces.lending_protocol import LendingProtocol
from .interfaces.token import Token
from .interfaces.transactional import Transactional
from .models import Balances, RatePreference, RecordSnapshot, RecordStatus, position_key
from .registry import PositionRegistry
from .transaction import atomic

logger = logging.getLogger(__name__)


class LendingAdapter:
    """Platform-facing hooks for positions backed by one borrowing record each.

    A position starts without a record. The first ``lend`` (or an explicit
    ``open_record``) opens one at the minimum debt and registers it; later
    calls resolve the record through the registry. Every mutating call is a
    single unit of work: any failure restores the registry, the stored rate
    preferences, and every transactional collaborator to their prior state.
    """

    def __init__(
        self,
        config: AdapterConfig,
        protocol: LendingProtocol,
        registry: PositionRegistry,
        operator: Capability,
        rate_feed: RateFeed,
        collateral_token: Token,
        debt_token: Token,
        clock: Clock,
        account: str = "leverage-adapter",
    ) -> None:
        self.config = config
        self.account = account
        self._protocol = protocol
        self._registry = registry
        self._operator = operator
        self._rate_feed = rate_feed
        self._collateral_token = collateral_token
        self._debt_token = debt_token
        self._clock = clock
        self._preferences: dict[int, RatePreference] = {}

    @property
    def collateral_asset(self) -> str:
        return self._collateral_token.address

    @property
    def debt_asset(self) -> str:
        return self._debt_token.address

    @property
    def min_collateral_ratio(self) -> int:
        return self.config.min_collateral_ratio

    # ------------------------------------------------------------------
    # Guards and lookups
    # ------------------------------------------------------------------

    def _atomic(self) -> AbstractContextManager[None]:
        candidates = (
            self,
            self._registry,
            self._protocol,
            self._collateral_token,
            self._debt_token,
        )
        return atomic(*(c for c in candidates if isinstance(c, Transactional)))

    def _require_running(self) -> None:
        if self._protocol.is_shutdown():
            raise Shutdown("Lending protocol is shut down")

    @staticmethod
    def _require_positive(amount: int, what: str) -> None:
        if amount <= 0:
            raise InvalidInput(f"{what} amount must be positive, got {amount}")

    def _check_rate_bounds(self, rate: int) -> None:
        if not self.config.min_rate <= rate <= self.config.max_rate:
            raise InvalidInput(
                f"Interest rate {rate} outside [{self.config.min_rate}, {self.config.max_rate}]"
            )

    def find_record(self, position: int) -> int | None:
        """Record handle for ``position``, or ``None`` before one is opened."""
        return self._registry.find_record(position_key(position))

    def _require_active(self, position: int) -> int:
        record = self._registry.resolve_record(position_key(position))
        status = self._protocol.record_status(record)
        if status != RecordStatus.ACTIVE:
            raise InvalidState(f"Record {record} for position {position} is {status.value}")
        return record

    def lookup_record(self, position: int) -> RecordSnapshot | None:
        """Best-effort record snapshot; absent or unreadable records give ``None``."""
        record = self.find_record(position)
        if record is None:
            return None
        try:
            return self._protocol.get_record(record)
        except ExternalFailure as e:
            logger.debug("Record %d for position %d unreadable: %s", record, position, e)
            return None

    def _fresh_price(self) -> int:
        quote = self._protocol.fetch_price()
        if not quote.fresh:
            raise Stale(f"Collateral price {quote.value} is stale")
        return quote.value

    def _check_solvency(self, collateral: int, debt: int, price: int, action: str) -> None:
        ratio = collateral_ratio(collateral, debt, price)
        if ratio is not None and ratio < self.config.min_collateral_ratio:
            raise InvariantViolation(
                f"{action} would leave collateral ratio {ratio} below "
                f"minimum {self.config.min_collateral_ratio}"
            )

    # ------------------------------------------------------------------
    # Rates
    # ------------------------------------------------------------------

    def optimal_rate(self) -> int:
        """Feed rate plus safety buffer, kept inside the configured bounds."""
        rate = self._rate_feed.get_optimal_rate(self.config.class_index)
        bounded = max(self.config.min_rate, min(rate, self.config.max_rate))
        if bounded != rate:
            logger.info("Optimal rate %d clamped to %d", rate, bounded)
        return bounded

    def rate_preference(self, position: int) -> RatePreference | None:
        preference = self._preferences.get(position_key(position))
        if preference is None:
            return None
        if self._clock.now() - preference.set_at > self.config.rate_preference_timeout:
            return None
        return preference

    def _choose_rate(self, position: int, rate: int | None) -> int:
        if rate is not None:
            self._check_rate_bounds(rate)
            return rate
        preference = self.rate_preference(position)
        if preference is not None:
            return preference.rate
        return self.optimal_rate()

    def set_position_interest_rate(self, position: int, rate: int) -> None:
        """Pin the rate the position's record will be opened with."""
        self._check_rate_bounds(rate)
        if self.find_record(position) is not None:
            raise InvalidState(f"Position {position} already has a record")
        self._preferences[position_key(position)] = RatePreference(
            rate=rate, set_at=self._clock.now()
        )
        logger.info("Rate preference %d set for position %d", rate, position)

    def set_rate_and_lend(self, position: int, rate: int, amount: int, payer: str) -> int:
        with self._atomic():
            self.set_position_interest_rate(position, rate)
            return self.lend(position, amount, payer)

    # ------------------------------------------------------------------
    # Record creation
    # ------------------------------------------------------------------

    def _insert_hints(self, rate: int) -> tuple[int, int]:
        num_trials = max(1, isqrt(self._protocol.record_count())) * self.config.hint_trials_factor
        hint, _, _ = self._protocol.get_approx_hint(rate, num_trials, self.config.hint_seed)
        return self._protocol.find_insert_position(rate, hint, hint)

    def _open_record(self, position: int, collateral: int, payer: str, rate: int | None) -> int:
        key = position_key(position)
        rate = self._choose_rate(position, rate)
        debt = self.config.min_debt
        max_fee = self._protocol.predict_open_fee(debt, rate)
        upper, lower = self._insert_hints(rate)

        record = self._protocol.open_record(
            self.account, collateral, debt, rate, upper, lower, max_fee
        )
        assigned = self._registry.assign(self._operator, record)
        if assigned != key:
            raise InvariantViolation(
                f"Registry assigned key {assigned} to record {record}, "
                f"position {position} expects key {key}"
            )
        self._preferences.pop(key, None)

        self._debt_token.transfer(self.account, payer, debt)
        logger.info(
            "Opened record %d for position %d: collateral %d, debt %d, rate %d",
            record, position, collateral, debt, rate,
        )
        return record

    def open_record(
        self, position: int, collateral_amount: int, payer: str, rate: int | None = None
    ) -> int:
        """Open the position's record, optionally at an explicit rate."""
        self._require_positive(collateral_amount, "Collateral")
        with self._atomic():
            self._require_running()
            if self.find_record(position) is not None:
                raise InvalidState(f"Position {position} already has a record")
            self._collateral_token.transfer(payer, self.account, collateral_amount)
            return self._open_record(position, collateral_amount, payer, rate)

    # ------------------------------------------------------------------
    # Platform hooks
    # ------------------------------------------------------------------

    def initialise(self, position: int, collateral_asset: str, debt_asset: str) -> None:
        if collateral_asset != self.collateral_asset or debt_asset != self.debt_asset:
            raise InvalidInput(
                f"Position {position} asks for {collateral_asset}/{debt_asset}, "
                f"adapter serves {self.collateral_asset}/{self.debt_asset}"
            )
        self._require_running()
        logger.debug("Position %d initialised", position)

    def lend(self, position: int, amount: int, payer: str) -> int:
        """Pull collateral from ``payer`` into the position's record."""
        self._require_positive(amount, "Lend")
        with self._atomic():
            self._require_running()
            record = self.find_record(position)
            if record is not None:
                record = self._require_active(position)
            self._collateral_token.transfer(payer, self.account, amount)
            if record is None:
                self._open_record(position, amount, payer, rate=None)
            else:
                self._protocol.add_collateral(record, amount)
                logger.info("Added %d collateral to record %d", amount, record)
        return amount

    def borrow(self, position: int, amount: int, to: str) -> int:
        self._require_positive(amount, "Borrow")
        with self._atomic():
            self._require_running()
            record = self._require_active(position)
            price = self._fresh_price()
            snapshot = self._protocol.get_record(record)
            fee = self._protocol.predict_adjust_fee(record, amount)
            self._check_solvency(snapshot.collateral, snapshot.debt + amount + fee, price, "Borrow")

            self._protocol.borrow(record, amount, fee)
            self._debt_token.transfer(self.account, to, amount)
            logger.info("Borrowed %d on record %d (fee %d)", amount, record, fee)
        return amount

    def repay(self, position: int, amount: int, payer: str) -> int:
        """Repay up to ``amount``; anything above the current debt is ignored."""
        self._require_positive(amount, "Repay")
        with self._atomic():
            record = self._require_active(position)
            debt = self._protocol.get_record(record).debt
            actual = min(amount, debt)
            if actual == 0:
                logger.info("Record %d has no debt to repay", record)
                return 0
            self._debt_token.transfer(payer, self.account, actual)
            self._protocol.repay(record, actual)
            logger.info("Repaid %d on record %d", actual, record)
        return actual

    def withdraw(self, position: int, amount: int, to: str) -> int:
        self._require_positive(amount, "Withdraw")
        with self._atomic():
            record = self._require_active(position)
            price = self._fresh_price()
            snapshot = self._protocol.get_record(record)
            if amount > snapshot.collateral:
                raise InvalidInput(
                    f"Withdrawal {amount} exceeds collateral {snapshot.collateral}"
                )
            self._check_solvency(snapshot.collateral - amount, snapshot.debt, price, "Withdraw")

            self._protocol.withdraw_collateral(record, amount)
            self._collateral_token.transfer(self.account, to, amount)
            logger.info("Withdrew %d collateral from record %d", amount, record)
        return amount

    # ------------------------------------------------------------------
    # Balance queries
    # ------------------------------------------------------------------

    def balances(self, position: int) -> Balances:
        snapshot = self.lookup_record(position)
        if snapshot is None:
            return Balances(collateral=0, debt=0)
        return Balances(collateral=snapshot.collateral, debt=snapshot.debt)

    def collateral_balance(self, position: int) -> int:
        return self.balances(position).collateral

    def debt_balance(self, position: int) -> int:
        return self.balances(position).debt

    def current_rate(self, position: int) -> int:
        """Record rate once opened; before that, the rate it would open with."""
        snapshot = self.lookup_record(position)
        if snapshot is not None:
            return snapshot.annual_interest_rate
        preference = self.rate_preference(position)
        return preference.rate if preference else self.optimal_rate()

    # ------------------------------------------------------------------
    # Transactional
    # ------------------------------------------------------------------

    def state(self) -> dict[int, RatePreference]:
        return dict(self._preferences)

    def restore(self, state: dict[int, RatePreference]) -> None:
        self._preferences = dict(state)
