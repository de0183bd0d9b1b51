"""Token protocol — fungible ledger used for collateral and debt."""
from typing import Protocol


class Token(Protocol):
    """Abstract interface for a transferable token."""

    @property
    def address(self) -> str: ...

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...
