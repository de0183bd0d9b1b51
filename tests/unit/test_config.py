"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from leverage_adapter.config import (
    AdapterConfig,
    AppConfig,
    FeedsConfig,
    _interpolate_env,
    load_config,
)
from leverage_adapter.fixed_point import WAD


def _write(tmp_path: Path, content: str) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(content)
    return cfg_file


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested_structures(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEED", "abc")
        result = _interpolate_env({"feeds": ["${FEED}", "plain"], "n": 3})
        assert result == {"feeds": ["abc", "plain"], "n": 3}


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.adapter.class_index == 1
        assert cfg.adapter.min_collateral_ratio == 11 * WAD // 10
        assert cfg.adapter.min_debt == 2000 * WAD
        assert cfg.adapter.min_rate == 5 * WAD // 1000
        assert cfg.adapter.rate_preference_timeout == 600
        assert cfg.adapter.collateral_cap == 5000 * WAD
        assert cfg.feeds.price_staleness == 120
        assert cfg.feeds.rate_classes == 3
        assert cfg.feeds.max_deviation == WAD // 10
        assert cfg.price_oracle.pyth.feeds == {"WETH": "aaa"}
        assert cfg.price_oracle.pyth.max_age == 30

    def test_missing_sections_use_defaults(self, tmp_path: Path) -> None:
        cfg = load_config(_write(tmp_path, "adapter: {}\n"))
        assert cfg.adapter == AdapterConfig()
        assert cfg.feeds == FeedsConfig()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        cfg = load_config(_write(tmp_path, ""))
        assert cfg == AppConfig()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_FEED_ID", "0xfeed")
        cfg = load_config(
            _write(
                tmp_path,
                'price_oracle:\n  pyth:\n    feeds: {WETH: "${TEST_FEED_ID}"}\n',
            )
        )
        assert cfg.price_oracle.pyth.feeds["WETH"] == "0xfeed"


class TestValidation:
    @pytest.mark.parametrize(
        ("yaml_content", "message"),
        [
            ("adapter: {min_collateral_ratio: 1.0}\n", "min_collateral_ratio"),
            ("adapter: {min_rate: 0.5, max_rate: 0.1}\n", "above max_rate"),
            ("adapter: {class_index: 3}\nfeeds: {rate_classes: 3}\n", "class_index"),
            ("feeds: {price_staleness_seconds: 0}\n", "staleness"),
            ("adapter: {debt_asset: WETH}\n", "must differ"),
            ("adapter: {collateral_asset: ''}\n", "must be set"),
            ("adapter: {min_debt: 0}\n", "min_debt"),
        ],
    )
    def test_invalid_values_raise(
        self, tmp_path: Path, yaml_content: str, message: str
    ) -> None:
        with pytest.raises(ValueError, match=message):
            load_config(_write(tmp_path, yaml_content))


class TestFrozenConfigs:
    def test_adapter_config_immutable(self) -> None:
        c = AdapterConfig()
        with pytest.raises(AttributeError):
            c.min_debt = 1  # type: ignore[misc]

    def test_feeds_config_immutable(self) -> None:
        f = FeedsConfig()
        with pytest.raises(AttributeError):
            f.rate_classes = 9  # type: ignore[misc]
