"""Service modules"""
from .feed_keeper import FeedKeeper
from .reporter import PositionReporter

__all__ = ["FeedKeeper", "PositionReporter"]
