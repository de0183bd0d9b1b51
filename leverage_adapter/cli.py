"""Command-line interface for the leverage adapter."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .clock import SystemClock
from .config import AppConfig, load_config
from .errors import AdapterError
from .feeds.price import PriceFeed
from .fixed_point import format_wad, to_wad
from .logging_setup import configure_logging
from .models import encode_position
from .oracles import PythOracle
from .services.feed_keeper import FeedKeeper
from .wiring import build_simulated_system

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="leverage-adapter",
        description="Leveraged positions on individually-collateralized borrowing records",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("prices", help="Fetch oracle prices once and push them into a price feed")

    sim = sub.add_parser("simulate", help="Open and borrow against a position in memory")
    sim.add_argument("--price", type=float, required=True, help="Collateral price")
    sim.add_argument("--collateral", type=float, required=True, help="Collateral to lend")
    sim.add_argument("--borrow", type=float, default=0.0, help="Debt to draw after opening")
    sim.add_argument("--rate", type=float, default=None, help="Explicit annual rate, e.g. 0.05")

    return parser


async def _push_prices(config: AppConfig) -> None:
    pyth = config.price_oracle.pyth
    if not pyth.feeds:
        logger.error("No Pyth feeds configured")
        return
    price_feed = PriceFeed(
        list(pyth.feeds), config.feeds.price_staleness, SystemClock(),
        max_deviation=config.feeds.max_deviation,
    )
    keeper = FeedKeeper(PythOracle(pyth), price_feed, price_feed.submitter)
    await keeper.push_prices()
    for asset in price_feed.assets:
        quote = price_feed.quote(asset)
        print(f"{asset}: {format_wad(quote.value)} ({'fresh' if quote.fresh else 'no data'})")


def _simulate(config: AppConfig, args: argparse.Namespace) -> None:
    system = build_simulated_system(config, SystemClock())
    asset = config.adapter.collateral_asset
    payer = "trader"

    system.price_feed.submit(system.price_feed.submitter, asset, to_wad(args.price))
    collateral = to_wad(args.collateral)
    system.collateral_token.mint(payer, collateral)

    position = encode_position(1, 1)
    adapter = system.adapter
    adapter.initialise(position, config.adapter.collateral_asset, config.adapter.debt_asset)
    if args.rate is not None:
        adapter.set_rate_and_lend(position, to_wad(args.rate), collateral, payer)
    else:
        adapter.lend(position, collateral, payer)
    if args.borrow > 0:
        adapter.borrow(position, to_wad(args.borrow), payer)

    print(system.reporter.build_summary(system.reporter.position_view(position)))


def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "prices":
        asyncio.run(_push_prices(config))
    elif args.command == "simulate":
        _simulate(config, args)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        _run(args)
    except AdapterError as e:
        logger.error("%s: %s", type(e).__name__, e)
        sys.exit(1)
