"""In-memory fungible token ledger."""
from __future__ import annotations

import logging

from ...errors import ExternalFailure

logger = logging.getLogger(__name__)


class InMemoryToken:
    """Balance table with mint/burn, used for collateral and debt assets."""

    def __init__(self, address: str) -> None:
        self._address = address
        self._balances: dict[str, int] = {}
        self.total_supply = 0

    @property
    def address(self) -> str:
        return self._address

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ExternalFailure(f"{self._address}: negative transfer {amount}")
        balance = self.balance_of(sender)
        if balance < amount:
            raise ExternalFailure(
                f"{self._address}: {sender} balance {balance} below transfer {amount}"
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        logger.debug("%s: %s -> %s %d", self._address, sender, recipient, amount)

    def mint(self, account: str, amount: int) -> None:
        self._balances[account] = self.balance_of(account) + amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        balance = self.balance_of(account)
        if balance < amount:
            raise ExternalFailure(
                f"{self._address}: {account} balance {balance} below burn {amount}"
            )
        self._balances[account] = balance - amount
        self.total_supply -= amount

    def state(self) -> tuple[dict[str, int], int]:
        return dict(self._balances), self.total_supply

    def restore(self, state: tuple[dict[str, int], int]) -> None:
        balances, total_supply = state
        self._balances = dict(balances)
        self.total_supply = total_supply
