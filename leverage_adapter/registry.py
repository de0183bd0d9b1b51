"""Bijective mapping between position keys and external record handles."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .auth import Capability, Role, require
from .errors import AlreadyMapped, InvalidState, KeyCollision, NotFound
from .interfaces.lending_protocol import StatusSource
from .models import UNMAPPED, RecordStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryState:
    last_key: int
    record_by_key: dict[int, int] = field(default_factory=dict)
    key_by_record: dict[int, int] = field(default_factory=dict)


class PositionRegistry:
    """Maps sequential position keys to borrowing-record handles and back.

    Keys start at 1 and are never reused. ``assign`` needs the operator
    capability and ``unmap`` the admin capability; reads are unrestricted.
    """

    def __init__(self, status_source: StatusSource) -> None:
        self._status_source = status_source
        self.operator = Capability(Role.OPERATOR, issuer="position-registry")
        self.admin = Capability(Role.ADMIN, issuer="position-registry")
        self._last_key = 0
        self._record_by_key: dict[int, int] = {}
        self._key_by_record: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._record_by_key)

    @property
    def last_key(self) -> int:
        return self._last_key

    # ------------------------------------------------------------------
    # Privileged
    # ------------------------------------------------------------------

    def assign(self, capability: Capability, record: int) -> int:
        """Map ``record`` to the next sequential key and return the key."""
        require(capability, self.operator)

        if self._status_source.record_status(record) == RecordStatus.NONEXISTENT:
            raise InvalidState(f"Record {record} does not exist")
        if record in self._key_by_record:
            raise AlreadyMapped(
                f"Record {record} already mapped to key {self._key_by_record[record]}"
            )

        key = self._last_key + 1
        if key in self._record_by_key:
            raise KeyCollision(f"Key {key} already mapped to record {self._record_by_key[key]}")

        self._last_key = key
        self._record_by_key[key] = record
        self._key_by_record[record] = key
        logger.info("Registered record %d under key %d", record, key)
        return key

    def unmap(self, capability: Capability, record: int) -> None:
        """Remove a mapping. Recovery only; the normal lifecycle never unmaps."""
        require(capability, self.admin)
        key = self._key_by_record.pop(record, None)
        if key is None:
            raise NotFound(f"Record {record} is not mapped")
        del self._record_by_key[key]
        logger.warning("Unmapped record %d from key %d", record, key)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def resolve_record(self, key: int) -> int:
        try:
            return self._record_by_key[key]
        except KeyError:
            raise NotFound(f"No record mapped to key {key}") from None

    def find_record(self, key: int) -> int | None:
        return self._record_by_key.get(key)

    def resolve_key(self, record: int) -> int:
        return self._key_by_record.get(record, UNMAPPED)

    def is_valid(self, record: int) -> bool:
        if record not in self._key_by_record:
            return False
        return self._status_source.record_status(record) == RecordStatus.ACTIVE

    def entries(self) -> list[tuple[int, int]]:
        return sorted(self._record_by_key.items())

    # ------------------------------------------------------------------
    # Transactional
    # ------------------------------------------------------------------

    def state(self) -> RegistryState:
        return RegistryState(
            last_key=self._last_key,
            record_by_key=dict(self._record_by_key),
            key_by_record=dict(self._key_by_record),
        )

    def restore(self, state: RegistryState) -> None:
        self._last_key = state.last_key
        self._record_by_key = dict(state.record_by_key)
        self._key_by_record = dict(state.key_by_record)
