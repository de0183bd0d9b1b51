"""Leverage adapter for individually-collateralized lending protocols."""
from .adapter import LendingAdapter
from .feeds import PriceFeed, RateFeed, StalenessCache
from .registry import PositionRegistry

__all__ = ["LendingAdapter", "PositionRegistry", "PriceFeed", "RateFeed", "StalenessCache"]
