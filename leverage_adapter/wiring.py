"""Construct a complete adapter stack on top of the in-memory protocol."""
from __future__ import annotations

from dataclasses import dataclass

from .adapter import LendingAdapter
from .config import AppConfig
from .feeds.price import PriceFeed
from .feeds.rate import RateFeed
from .interfaces.clock import Clock
from .protocols.memory import InMemoryLendingProtocol, InMemoryToken
from .registry import PositionRegistry
from .services.reporter import PositionReporter


@dataclass
class SimulatedSystem:
    collateral_token: InMemoryToken
    debt_token: InMemoryToken
    price_feed: PriceFeed
    rate_feed: RateFeed
    protocol: InMemoryLendingProtocol
    registry: PositionRegistry
    adapter: LendingAdapter
    reporter: PositionReporter


def build_simulated_system(
    config: AppConfig,
    clock: Clock,
    upfront_period: int | None = None,
) -> SimulatedSystem:
    """Wire feeds, protocol, registry, adapter and reporter.

    The protocol prices collateral from the price feed, and the rate feed's
    system-average fallback reads the protocol's aggregate debt counters.
    """
    adapter_cfg = config.adapter
    feeds_cfg = config.feeds

    collateral_token = InMemoryToken(adapter_cfg.collateral_asset)
    debt_token = InMemoryToken(adapter_cfg.debt_asset)

    price_feed = PriceFeed(
        [adapter_cfg.collateral_asset],
        feeds_cfg.price_staleness,
        clock,
        max_deviation=feeds_cfg.max_deviation,
    )

    protocol_kwargs = {}
    if upfront_period is not None:
        protocol_kwargs["upfront_period"] = upfront_period
    protocol = InMemoryLendingProtocol(
        collateral_token,
        debt_token,
        price_feed.quoter(adapter_cfg.collateral_asset),
        clock,
        min_collateral_ratio=adapter_cfg.min_collateral_ratio,
        min_debt=adapter_cfg.min_debt,
        min_rate=adapter_cfg.min_rate,
        max_rate=adapter_cfg.max_rate,
        **protocol_kwargs,
    )

    rate_feed = RateFeed(
        feeds_cfg.rate_classes,
        feeds_cfg.rate_staleness,
        clock,
        aggregates=[protocol],
        safety_buffer=adapter_cfg.rate_safety_buffer,
        max_deviation=feeds_cfg.max_deviation,
    )

    registry = PositionRegistry(protocol)
    adapter = LendingAdapter(
        adapter_cfg,
        protocol,
        registry,
        registry.operator,
        rate_feed,
        collateral_token,
        debt_token,
        clock,
    )
    reporter = PositionReporter(adapter, registry, protocol, price_feed)

    return SimulatedSystem(
        collateral_token=collateral_token,
        debt_token=debt_token,
        price_feed=price_feed,
        rate_feed=rate_feed,
        protocol=protocol,
        registry=registry,
        adapter=adapter,
        reporter=reporter,
    )
