"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .fixed_point import WAD, to_wad

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AdapterConfig:
    """Lending adapter parameters. Ratios, rates and amounts are wad."""

    collateral_asset: str = "WETH"
    debt_asset: str = "BOLD"
    class_index: int = 0
    min_collateral_ratio: int = 110 * WAD // 100
    min_debt: int = 2000 * WAD
    min_rate: int = 5 * WAD // 1000
    max_rate: int = 250 * WAD // 100
    rate_safety_buffer: int = WAD // 1000
    rate_preference_timeout: int = 3600
    hint_trials_factor: int = 15
    hint_seed: int = 42
    collateral_cap: int = 0


@dataclass(frozen=True)
class FeedsConfig:
    price_staleness: int = 3600
    rate_staleness: int = 86400
    rate_classes: int = 1
    max_deviation: int = 5 * WAD // 100


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)
    timeout: int = 10
    max_age: int = 60


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    adapter: AdapterConfig = field(default_factory=AdapterConfig)
    feeds: FeedsConfig = field(default_factory=FeedsConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _wad_or_default(raw: dict[str, Any], key: str, default: int) -> int:
    """Human-readable YAML number → wad; missing keys keep the wad default."""
    if key not in raw or raw[key] is None:
        return default
    return to_wad(raw[key])


def _build_adapter(raw: dict[str, Any]) -> AdapterConfig:
    defaults = AdapterConfig()
    return AdapterConfig(
        collateral_asset=str(raw.get("collateral_asset", defaults.collateral_asset)),
        debt_asset=str(raw.get("debt_asset", defaults.debt_asset)),
        class_index=int(raw.get("class_index", defaults.class_index)),
        min_collateral_ratio=_wad_or_default(
            raw, "min_collateral_ratio", defaults.min_collateral_ratio
        ),
        min_debt=_wad_or_default(raw, "min_debt", defaults.min_debt),
        min_rate=_wad_or_default(raw, "min_rate", defaults.min_rate),
        max_rate=_wad_or_default(raw, "max_rate", defaults.max_rate),
        rate_safety_buffer=_wad_or_default(
            raw, "rate_safety_buffer", defaults.rate_safety_buffer
        ),
        rate_preference_timeout=int(
            raw.get("rate_preference_timeout_seconds", defaults.rate_preference_timeout)
        ),
        hint_trials_factor=int(raw.get("hint_trials_factor", defaults.hint_trials_factor)),
        hint_seed=int(raw.get("hint_seed", defaults.hint_seed)),
        collateral_cap=_wad_or_default(raw, "collateral_cap", defaults.collateral_cap),
    )


def _build_feeds(raw: dict[str, Any]) -> FeedsConfig:
    defaults = FeedsConfig()
    return FeedsConfig(
        price_staleness=int(raw.get("price_staleness_seconds", defaults.price_staleness)),
        rate_staleness=int(raw.get("rate_staleness_seconds", defaults.rate_staleness)),
        rate_classes=int(raw.get("rate_classes", defaults.rate_classes)),
        max_deviation=_wad_or_default(raw, "max_deviation", defaults.max_deviation),
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
            timeout=int(pyth_raw.get("timeout_seconds", PythConfig.timeout)),
            max_age=int(pyth_raw.get("max_age_seconds", PythConfig.max_age)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        adapter=_build_adapter(raw.get("adapter", {})),
        feeds=_build_feeds(raw.get("feeds", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    adapter = cfg.adapter
    feeds = cfg.feeds

    if not adapter.collateral_asset or not adapter.debt_asset:
        raise ValueError("Both collateral_asset and debt_asset must be set")
    if adapter.collateral_asset == adapter.debt_asset:
        raise ValueError("collateral_asset and debt_asset must differ")
    if adapter.min_collateral_ratio <= WAD:
        raise ValueError("min_collateral_ratio must be above 1")
    if adapter.min_debt <= 0:
        raise ValueError("min_debt must be positive")
    if adapter.min_rate > adapter.max_rate:
        raise ValueError(
            f"min_rate {adapter.min_rate} is above max_rate {adapter.max_rate}"
        )
    if adapter.rate_preference_timeout <= 0:
        raise ValueError("rate_preference_timeout_seconds must be positive")
    if adapter.hint_trials_factor <= 0:
        raise ValueError("hint_trials_factor must be positive")

    if feeds.price_staleness <= 0 or feeds.rate_staleness <= 0:
        raise ValueError("Feed staleness thresholds must be positive")
    if feeds.rate_classes <= 0:
        raise ValueError("rate_classes must be positive")
    if not 0 <= adapter.class_index < feeds.rate_classes:
        raise ValueError(
            f"class_index {adapter.class_index} outside 0..{feeds.rate_classes - 1}"
        )
