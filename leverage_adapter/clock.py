"""Wall-clock time source."""
import time


class SystemClock:
    """Clock backed by ``time.time``, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())
