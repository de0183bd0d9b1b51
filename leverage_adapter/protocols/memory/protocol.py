"""In-memory lending protocol with individually-collateralized records.

Reference implementation of ``LendingProtocol`` used by the simulator and
the test-suite. Each record carries its own interest rate; records are kept
sorted by rate (highest first), interest accrues lazily, and every debt
increase is charged an upfront fee of ``upfront_period`` worth of interest
at the post-change system average rate.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Callable

from ...errors import ExternalFailure
from ...fixed_point import SECONDS_PER_YEAR, WAD, collateral_ratio
from ...interfaces.clock import Clock
from ...models import PriceQuote, RecordSnapshot, RecordStatus
from . import hints
from .token import InMemoryToken

logger = logging.getLogger(__name__)

UPFRONT_INTEREST_PERIOD = 7 * 24 * 60 * 60


@dataclass
class _Record:
    owner: str
    collateral: int
    recorded_debt: int
    rate: int
    status: RecordStatus
    last_update: int


class InMemoryLendingProtocol:
    """Single-collateral lending branch kept entirely in memory."""

    def __init__(
        self,
        collateral_token: InMemoryToken,
        debt_token: InMemoryToken,
        price_source: Callable[[], PriceQuote],
        clock: Clock,
        min_collateral_ratio: int = 110 * WAD // 100,
        min_debt: int = 2000 * WAD,
        min_rate: int = 5 * WAD // 1000,
        max_rate: int = 250 * WAD // 100,
        upfront_period: int = UPFRONT_INTEREST_PERIOD,
        address: str = "lending-protocol",
    ) -> None:
        self.address = address
        self.collateral_token = collateral_token
        self.debt_token = debt_token
        self.min_collateral_ratio = min_collateral_ratio
        self.min_debt = min_debt
        self.min_rate = min_rate
        self.max_rate = max_rate
        self.upfront_period = upfront_period
        self._price_source = price_source
        self._clock = clock
        self._records: dict[int, _Record] = {}
        self._order: list[int] = []
        self._next_id = 1
        self._shutdown = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get(self, record: int) -> _Record:
        rec = self._records.get(record)
        if rec is None:
            raise ExternalFailure(f"Record {record} does not exist")
        return rec

    def _active(self, record: int) -> _Record:
        rec = self._get(record)
        if rec.status != RecordStatus.ACTIVE:
            raise ExternalFailure(f"Record {record} is {rec.status.value}, not active")
        return rec

    def _accrued(self, rec: _Record) -> int:
        elapsed = max(0, self._clock.now() - rec.last_update)
        interest = rec.recorded_debt * rec.rate * elapsed // (SECONDS_PER_YEAR * WAD)
        return rec.recorded_debt + interest

    def _settle(self, rec: _Record) -> None:
        rec.recorded_debt = self._accrued(rec)
        rec.last_update = self._clock.now()

    def _sorted_entries(self) -> list[tuple[int, int]]:
        return [(r, self._records[r].rate) for r in self._order]

    def _check_ratio(self, collateral: int, debt: int, price: int) -> None:
        ratio = collateral_ratio(collateral, debt, price)
        if ratio is not None and ratio < self.min_collateral_ratio:
            raise ExternalFailure(
                f"Collateral ratio {ratio} below minimum {self.min_collateral_ratio}"
            )

    def _check_fee(self, fee: int, max_upfront_fee: int) -> None:
        if fee > max_upfront_fee:
            raise ExternalFailure(f"Upfront fee {fee} exceeds cap {max_upfront_fee}")

    def _require_open(self) -> None:
        if self._shutdown:
            raise ExternalFailure("Protocol is shut down")

    def _upfront_fee(self, debt_increase: int, rate: int) -> int:
        total = self.aggregate_debt() + debt_increase
        if total == 0:
            return 0
        average = (self.aggregate_weighted_debt_sum() + debt_increase * rate) // total
        return debt_increase * average * self.upfront_period // (SECONDS_PER_YEAR * WAD)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def record_status(self, record: int) -> RecordStatus:
        rec = self._records.get(record)
        return rec.status if rec else RecordStatus.NONEXISTENT

    def get_record(self, record: int) -> RecordSnapshot:
        rec = self._get(record)
        return RecordSnapshot(
            record=record,
            owner=rec.owner,
            collateral=rec.collateral,
            debt=self._accrued(rec),
            annual_interest_rate=rec.rate,
            status=rec.status,
            last_update=rec.last_update,
        )

    def fetch_price(self) -> PriceQuote:
        return self._price_source()

    def aggregate_debt(self) -> int:
        return sum(
            self._accrued(rec)
            for rec in self._records.values()
            if rec.status in (RecordStatus.ACTIVE, RecordStatus.ZOMBIE)
        )

    def aggregate_weighted_debt_sum(self) -> int:
        return sum(
            self._accrued(rec) * rec.rate
            for rec in self._records.values()
            if rec.status in (RecordStatus.ACTIVE, RecordStatus.ZOMBIE)
        )

    def total_collateral(self) -> int:
        return sum(
            rec.collateral
            for rec in self._records.values()
            if rec.status in (RecordStatus.ACTIVE, RecordStatus.ZOMBIE)
        )

    def record_count(self) -> int:
        return len(self._order)

    def is_shutdown(self) -> bool:
        return self._shutdown

    def get_approx_hint(
        self, annual_interest_rate: int, num_trials: int, seed: int
    ) -> tuple[int, int, int]:
        return hints.approx_hint(
            self._sorted_entries(), annual_interest_rate, num_trials, seed
        )

    def find_insert_position(
        self, annual_interest_rate: int, prev_hint: int, next_hint: int
    ) -> tuple[int, int]:
        return hints.find_insert_position(
            self._sorted_entries(), annual_interest_rate, prev_hint, next_hint
        )

    def predict_open_fee(self, debt: int, annual_interest_rate: int) -> int:
        return self._upfront_fee(debt, annual_interest_rate)

    def predict_adjust_fee(self, record: int, debt_increase: int) -> int:
        return self._upfront_fee(debt_increase, self._get(record).rate)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def open_record(
        self,
        owner: str,
        collateral: int,
        debt: int,
        annual_interest_rate: int,
        upper_hint: int,
        lower_hint: int,
        max_upfront_fee: int,
    ) -> int:
        self._require_open()
        if not self.min_rate <= annual_interest_rate <= self.max_rate:
            raise ExternalFailure(f"Interest rate {annual_interest_rate} out of bounds")
        if debt < self.min_debt:
            raise ExternalFailure(f"Debt {debt} below minimum {self.min_debt}")
        if collateral <= 0:
            raise ExternalFailure("Collateral must be positive")

        fee = self._upfront_fee(debt, annual_interest_rate)
        self._check_fee(fee, max_upfront_fee)
        price = self.fetch_price().value
        self._check_ratio(collateral, debt + fee, price)

        self.collateral_token.transfer(owner, self.address, collateral)
        self.debt_token.mint(owner, debt)

        record = self._next_id
        self._next_id += 1
        self._records[record] = _Record(
            owner=owner,
            collateral=collateral,
            recorded_debt=debt + fee,
            rate=annual_interest_rate,
            status=RecordStatus.ACTIVE,
            last_update=self._clock.now(),
        )

        entries = self._sorted_entries()
        upper, lower = hints.find_insert_position(
            entries, annual_interest_rate, upper_hint, lower_hint
        )
        if (upper, lower) != (upper_hint, lower_hint):
            logger.debug(
                "Hints (%d, %d) off for rate %d, inserted at (%d, %d)",
                upper_hint, lower_hint, annual_interest_rate, upper, lower,
            )
        start = self._order.index(upper) + 1 if upper else 0
        self._order.insert(hints.insert_index(entries, annual_interest_rate, start), record)

        logger.info(
            "Opened record %d for %s: collateral %d, debt %d, rate %d",
            record, owner, collateral, debt + fee, annual_interest_rate,
        )
        return record

    def add_collateral(self, record: int, amount: int) -> None:
        self._require_open()
        rec = self._active(record)
        if amount <= 0:
            raise ExternalFailure("Collateral increase must be positive")
        self.collateral_token.transfer(rec.owner, self.address, amount)
        rec.collateral += amount

    def withdraw_collateral(self, record: int, amount: int) -> None:
        rec = self._active(record)
        if amount <= 0 or amount > rec.collateral:
            raise ExternalFailure(f"Invalid collateral withdrawal {amount}")
        self._settle(rec)
        self._check_ratio(rec.collateral - amount, rec.recorded_debt, self.fetch_price().value)
        rec.collateral -= amount
        self.collateral_token.transfer(self.address, rec.owner, amount)

    def borrow(self, record: int, amount: int, max_upfront_fee: int) -> None:
        self._require_open()
        rec = self._active(record)
        if amount <= 0:
            raise ExternalFailure("Debt increase must be positive")
        fee = self._upfront_fee(amount, rec.rate)
        self._check_fee(fee, max_upfront_fee)
        self._settle(rec)
        self._check_ratio(rec.collateral, rec.recorded_debt + amount + fee, self.fetch_price().value)
        rec.recorded_debt += amount + fee
        self.debt_token.mint(rec.owner, amount)

    def repay(self, record: int, amount: int) -> None:
        rec = self._active(record)
        self._settle(rec)
        if amount <= 0 or amount > rec.recorded_debt:
            raise ExternalFailure(f"Invalid repayment {amount}")
        self.debt_token.burn(rec.owner, amount)
        rec.recorded_debt -= amount

    def close_record(self, record: int) -> None:
        """Repay all debt from the owner and return the collateral."""
        rec = self._active(record)
        self._settle(rec)
        self.debt_token.burn(rec.owner, rec.recorded_debt)
        self.collateral_token.transfer(self.address, rec.owner, rec.collateral)
        rec.recorded_debt = 0
        rec.collateral = 0
        rec.status = RecordStatus.CLOSED
        self._order.remove(record)
        logger.info("Closed record %d", record)

    def redeem(self, record: int, debt_amount: int) -> None:
        """Swap ``debt_amount`` of a record's debt for collateral at the current price.

        A redemption that leaves the debt under the minimum turns the record
        into a zombie and takes it out of the sorted order.
        """
        rec = self._active(record)
        self._settle(rec)
        debt_amount = min(debt_amount, rec.recorded_debt)
        price = self.fetch_price().value
        collateral_out = min(rec.collateral, debt_amount * WAD // price)
        rec.recorded_debt -= debt_amount
        rec.collateral -= collateral_out
        if rec.recorded_debt < self.min_debt:
            rec.status = RecordStatus.ZOMBIE
            self._order.remove(record)
            logger.info("Record %d became a zombie after redemption", record)

    def shutdown(self) -> None:
        self._shutdown = True
        logger.warning("Protocol %s shut down", self.address)

    # ------------------------------------------------------------------
    # Transactional
    # ------------------------------------------------------------------

    def state(self) -> tuple:
        return (
            copy.deepcopy(self._records),
            list(self._order),
            self._next_id,
            self._shutdown,
        )

    def restore(self, state: tuple) -> None:
        records, order, next_id, shutdown = state
        self._records = copy.deepcopy(records)
        self._order = list(order)
        self._next_id = next_id
        self._shutdown = shutdown
