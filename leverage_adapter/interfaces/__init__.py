"""Protocol interfaces for the leverage adapter."""
from .clock import Clock
from .lending_protocol import AggregateSource, LendingProtocol, StatusSource
from .price_oracle import PriceOracle
from .token import Token
from .transactional import Transactional

__all__ = [
    "AggregateSource",
    "Clock",
    "LendingProtocol",
    "PriceOracle",
    "StatusSource",
    "Token",
    "Transactional",
]
