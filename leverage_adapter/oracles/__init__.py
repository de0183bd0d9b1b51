"""Off-chain price oracles."""
from .pyth import PythOracle

__all__ = ["PythOracle"]
