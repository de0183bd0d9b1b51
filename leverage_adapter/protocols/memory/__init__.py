"""In-memory lending protocol used by the simulator and tests."""
from .protocol import UPFRONT_INTEREST_PERIOD, InMemoryLendingProtocol
from .token import InMemoryToken

__all__ = ["InMemoryLendingProtocol", "InMemoryToken", "UPFRONT_INTEREST_PERIOD"]
