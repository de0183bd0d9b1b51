"""Unit tests for CLI argument parsing."""
from __future__ import annotations

import pytest

from leverage_adapter.cli import build_parser


class TestBuildParser:
    def test_prices_command(self) -> None:
        args = build_parser().parse_args(["prices"])
        assert args.command == "prices"

    def test_simulate_command(self) -> None:
        args = build_parser().parse_args(
            ["simulate", "--price", "2000", "--collateral", "2.2", "--borrow", "2000"]
        )
        assert args.command == "simulate"
        assert args.price == 2000.0
        assert args.collateral == 2.2
        assert args.borrow == 2000.0
        assert args.rate is None

    def test_simulate_defaults(self) -> None:
        args = build_parser().parse_args(["simulate", "--price", "1", "--collateral", "1"])
        assert args.borrow == 0.0

    def test_simulate_requires_price(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["simulate", "--collateral", "1"])

    def test_config_flag(self) -> None:
        args = build_parser().parse_args(["--config", "/tmp/c.yaml", "prices"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = build_parser().parse_args(["--log-level", "DEBUG", "prices"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        args = build_parser().parse_args([])
        assert args.command is None
