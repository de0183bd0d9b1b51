"""Read-only reporting over managed positions."""
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from ..adapter import LendingAdapter
from ..errors import ExternalFailure
from ..feeds.price import PriceFeed
from ..fixed_point import collateral_ratio, format_wad
from ..interfaces.lending_protocol import LendingProtocol
from ..models import UNMAPPED, PositionView, RecordStatus, position_key
from ..registry import PositionRegistry

logger = logging.getLogger(__name__)


class PositionReporter:
    """Balances, thresholds, headroom and raw record data for positions.

    Display prices come from the feed's fallback chain, so a report can be
    produced during a feed outage; ``price_fresh`` says whether it was.
    """

    def __init__(
        self,
        adapter: LendingAdapter,
        registry: PositionRegistry,
        protocol: LendingProtocol,
        price_feed: PriceFeed,
    ) -> None:
        self._adapter = adapter
        self._registry = registry
        self._protocol = protocol
        self._price_feed = price_feed

    # ------------------------------------------------------------------
    # Headroom
    # ------------------------------------------------------------------

    def available_borrow(self, collateral: int, debt: int, price: int) -> int:
        """Extra debt the record can take before hitting the minimum ratio."""
        max_debt = collateral * price // self._adapter.min_collateral_ratio
        return max(0, max_debt - debt)

    def available_lend(self) -> int | None:
        """Collateral the protocol will still accept; ``None`` when uncapped."""
        if self._protocol.is_shutdown():
            return 0
        cap = self._adapter.config.collateral_cap
        if cap <= 0:
            return None
        return max(0, cap - self._protocol.total_collateral())

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def position_view(self, position: int) -> PositionView:
        quote = self._price_feed.quote(self._adapter.collateral_asset)
        record = self._adapter.find_record(position) or UNMAPPED
        snapshot = self._adapter.lookup_record(position)

        if snapshot is None:
            status = RecordStatus.NONEXISTENT
            collateral = debt = 0
        else:
            status = snapshot.status
            collateral, debt = snapshot.collateral, snapshot.debt

        return PositionView(
            position=position,
            key=position_key(position) if record else UNMAPPED,
            record=record,
            status=status,
            collateral=collateral,
            debt=debt,
            price=quote.value,
            price_fresh=quote.fresh,
            collateral_ratio=collateral_ratio(collateral, debt, quote.value),
            min_collateral_ratio=self._adapter.min_collateral_ratio,
            available_borrow=self.available_borrow(collateral, debt, quote.value),
            available_lend=self.available_lend(),
            interest_rate=self._adapter.current_rate(position),
            collateral_asset=self._adapter.collateral_asset,
            debt_asset=self._adapter.debt_asset,
        )

    def export_raw(self, position: int) -> dict[str, Any]:
        """Diagnostics dump of everything known about one position."""
        key = position_key(position)
        record = self._adapter.find_record(position)
        raw: dict[str, Any] = {
            "position": position,
            "key": key,
            "record": record or UNMAPPED,
            "registry_last_key": self._registry.last_key,
            "rate_preference": None,
            "record_data": None,
            "price_reading": asdict(self._price_feed.reading(self._adapter.collateral_asset)),
        }
        preference = self._adapter.rate_preference(position)
        if preference is not None:
            raw["rate_preference"] = asdict(preference)
        if record is not None:
            try:
                snapshot = self._protocol.get_record(record)
            except ExternalFailure as e:
                logger.warning("Could not read record %d: %s", record, e)
            else:
                data = asdict(snapshot)
                data["status"] = snapshot.status.value
                raw["record_data"] = data
        return raw

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def _format_ratio(ratio: int | None) -> str:
        if ratio is None:
            return "∞"
        return f"{format_wad(ratio * 100, 2)}%"

    def build_summary(self, view: PositionView) -> str:
        lend_headroom = (
            "unlimited" if view.available_lend is None else format_wad(view.available_lend)
        )
        price_note = "" if view.price_fresh else " (stale)"
        return (
            f"📊 Position {view.position} · record {view.record or '—'} · {view.status.value}\n"
            f"\n"
            f"Collateral: {format_wad(view.collateral)} {view.collateral_asset}\n"
            f"Debt: {format_wad(view.debt)} {view.debt_asset}\n"
            f"Price: {format_wad(view.price, 2)}{price_note}\n"
            f"Collateral ratio: {self._format_ratio(view.collateral_ratio)}"
            f" · min {self._format_ratio(view.min_collateral_ratio)}\n"
            f"Interest rate: {format_wad(view.interest_rate * 100, 2)}%\n"
            f"Borrow headroom: {format_wad(view.available_borrow)} {view.debt_asset}\n"
            f"Lend headroom: {lend_headroom}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )
