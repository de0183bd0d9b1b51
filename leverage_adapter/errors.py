"""Error taxonomy shared by feeds, registry and adapter."""
from __future__ import annotations


class AdapterError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(AdapterError):
    """Wrong asset identity, malformed batch or out-of-range value."""


class NotFound(AdapterError):
    """Lookup of an unmapped registry key."""


class InvalidState(AdapterError):
    """Record missing, not active, or operation not allowed in this state."""


class AlreadyMapped(InvalidState):
    """Record already holds a registry key."""


class KeyCollision(InvalidState):
    """Next sequential registry key is already taken."""


class Stale(AdapterError):
    """No reading recent enough for a fresh read."""


class ExternalFailure(AdapterError):
    """The external protocol or a feed failed during a call."""


class Shutdown(AdapterError):
    """The external protocol is shut down."""


class InvariantViolation(AdapterError):
    """Solvency or registry consistency check failed."""


class Unauthorized(AdapterError):
    """Privileged call made without the matching capability."""
