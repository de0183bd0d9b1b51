"""Capability tokens for privileged entry points.

A capability is an unforgeable object handed out once by the service that
checks it. Privileged calls take the capability as their first argument and
compare it by identity, so holding a capability with the same role label is
not enough.
"""
from __future__ import annotations

from enum import Enum

from .errors import Unauthorized


class Role(str, Enum):
    OPERATOR = "operator"
    ADMIN = "admin"
    SUBMITTER = "submitter"


class Capability:
    """Identity-compared permission token."""

    __slots__ = ("role", "issuer")

    def __init__(self, role: Role, issuer: str = "") -> None:
        self.role = role
        self.issuer = issuer

    def __repr__(self) -> str:
        return f"Capability(role={self.role.value!r}, issuer={self.issuer!r})"


def require(capability: object, expected: Capability) -> None:
    """Raise ``Unauthorized`` unless ``capability`` is exactly ``expected``."""
    if capability is not expected:
        raise Unauthorized(
            f"{expected.issuer or 'service'} requires the {expected.role.value} capability"
        )
