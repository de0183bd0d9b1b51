"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from leverage_adapter.config import (
    AdapterConfig,
    AppConfig,
    FeedsConfig,
    PriceOracleConfig,
    PythConfig,
)
from leverage_adapter.fixed_point import WAD
from leverage_adapter.models import encode_position
from leverage_adapter.wiring import SimulatedSystem, build_simulated_system

START_TIME = 1_700_000_000
PAYER = "trader"


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: int = START_TIME) -> None:
        self._now = now

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> None:
        self._now += seconds


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def adapter_config() -> AdapterConfig:
    return AdapterConfig(
        collateral_asset="WETH",
        debt_asset="BOLD",
        class_index=0,
        min_collateral_ratio=110 * WAD // 100,
        min_debt=2000 * WAD,
        min_rate=5 * WAD // 1000,
        max_rate=250 * WAD // 100,
        rate_safety_buffer=WAD // 1000,
        rate_preference_timeout=3600,
        hint_trials_factor=15,
        hint_seed=42,
        collateral_cap=0,
    )


@pytest.fixture()
def feeds_config() -> FeedsConfig:
    return FeedsConfig(
        price_staleness=3600,
        rate_staleness=86400,
        rate_classes=4,
        max_deviation=5 * WAD // 100,
    )


@pytest.fixture()
def sample_pyth_config() -> PythConfig:
    return PythConfig(
        hermes_url="https://hermes.example.com/v2/updates/price/latest",
        feeds={"WETH": "aaa111", "WBTC": "bbb222"},
        timeout=5,
        max_age=0,
    )


@pytest.fixture()
def sample_app_config(
    adapter_config: AdapterConfig,
    feeds_config: FeedsConfig,
    sample_pyth_config: PythConfig,
) -> AppConfig:
    return AppConfig(
        adapter=adapter_config,
        feeds=feeds_config,
        price_oracle=PriceOracleConfig(provider="pyth", pyth=sample_pyth_config),
    )


# ---------------------------------------------------------------------------
# Wired system fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def system(sample_app_config: AppConfig, clock: ManualClock) -> SimulatedSystem:
    """Full stack with a fresh 2000 price and the default upfront fee."""
    sys_ = build_simulated_system(sample_app_config, clock)
    sys_.price_feed.submit(sys_.price_feed.submitter, "WETH", 2000 * WAD)
    sys_.collateral_token.mint(PAYER, 1000 * WAD)
    return sys_


@pytest.fixture()
def feeless_system(sample_app_config: AppConfig, clock: ManualClock) -> SimulatedSystem:
    """Same as ``system`` but with no upfront fee, for exact ratio boundaries."""
    sys_ = build_simulated_system(sample_app_config, clock, upfront_period=0)
    sys_.price_feed.submit(sys_.price_feed.submitter, "WETH", 2000 * WAD)
    sys_.collateral_token.mint(PAYER, 1000 * WAD)
    return sys_


@pytest.fixture()
def position() -> int:
    return encode_position(7, 1)


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    adapter:
      collateral_asset: WETH
      debt_asset: BOLD
      class_index: 1
      min_collateral_ratio: 1.1
      min_debt: 2000
      min_rate: 0.005
      max_rate: 2.5
      rate_safety_buffer: 0.001
      rate_preference_timeout_seconds: 600
      hint_trials_factor: 10
      collateral_cap: 5000
    feeds:
      price_staleness_seconds: 120
      rate_staleness_seconds: 3600
      rate_classes: 3
      max_deviation: 0.1
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        timeout_seconds: 5
        max_age_seconds: 30
        feeds: {WETH: "aaa"}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
