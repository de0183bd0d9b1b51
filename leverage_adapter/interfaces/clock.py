"""Clock protocol — source of the current time in whole seconds."""
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...
