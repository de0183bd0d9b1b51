"""Transactional protocol — state snapshot/restore for atomic operations."""
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transactional(Protocol):
    """A participant whose state can be captured and rolled back."""

    def state(self) -> Any: ...

    def restore(self, state: Any) -> None: ...
