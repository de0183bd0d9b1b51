"""Lending protocol — the external per-account borrowing-record protocol."""
from typing import Protocol

from ..models import PriceQuote, RecordSnapshot, RecordStatus


class StatusSource(Protocol):
    """Anything that can report the lifecycle status of a record."""

    def record_status(self, record: int) -> RecordStatus: ...


class AggregateSource(Protocol):
    """Protocol-wide debt counters used for the system-average rate."""

    def aggregate_debt(self) -> int: ...

    def aggregate_weighted_debt_sum(self) -> int: ...


class LendingProtocol(StatusSource, AggregateSource, Protocol):
    """Abstract interface for an individually-collateralized lending protocol.

    Every call is synchronous and either completes or raises; a raised
    ``ExternalFailure`` means the protocol rejected the request.
    """

    def get_record(self, record: int) -> RecordSnapshot: ...

    def open_record(
        self,
        owner: str,
        collateral: int,
        debt: int,
        annual_interest_rate: int,
        upper_hint: int,
        lower_hint: int,
        max_upfront_fee: int,
    ) -> int: ...

    def add_collateral(self, record: int, amount: int) -> None: ...

    def withdraw_collateral(self, record: int, amount: int) -> None: ...

    def borrow(self, record: int, amount: int, max_upfront_fee: int) -> None: ...

    def repay(self, record: int, amount: int) -> None: ...

    def fetch_price(self) -> PriceQuote: ...

    def total_collateral(self) -> int: ...

    def record_count(self) -> int: ...

    def get_approx_hint(
        self, annual_interest_rate: int, num_trials: int, seed: int
    ) -> tuple[int, int, int]: ...

    def find_insert_position(
        self, annual_interest_rate: int, prev_hint: int, next_hint: int
    ) -> tuple[int, int]: ...

    def predict_open_fee(self, debt: int, annual_interest_rate: int) -> int: ...

    def predict_adjust_fee(self, record: int, debt_increase: int) -> int: ...

    def is_shutdown(self) -> bool: ...
