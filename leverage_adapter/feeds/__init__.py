"""Staleness-aware price and rate feeds."""
from .cache import StalenessCache
from .price import PriceFeed
from .rate import RateFeed

__all__ = ["PriceFeed", "RateFeed", "StalenessCache"]
