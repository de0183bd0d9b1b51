"""Pure hint-search functions over a rate-sorted record list — no I/O.

Records are ordered by annual interest rate, highest first. Each entry is a
``(record, rate)`` pair; ``0`` stands for "no neighbour" at either end.
"""
from __future__ import annotations

from typing import Sequence

# 64-bit LCG constants (Knuth MMIX)
_LCG_MULTIPLIER = 6364136223846793005
_LCG_INCREMENT = 1442695040888963407
_LCG_MODULUS = 2**64


def next_seed(seed: int) -> int:
    return (seed * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS


def approx_hint(
    entries: Sequence[tuple[int, int]],
    rate: int,
    num_trials: int,
    seed: int,
) -> tuple[int, int, int]:
    """Sample ``num_trials`` records and return the one closest in rate.

    Returns ``(hint, diff, latest_seed)``; the lowest-rate record is the
    starting candidate so an empty sample still yields a usable hint.
    """
    if not entries:
        return 0, 0, seed

    hint, hint_rate = entries[-1]
    diff = abs(hint_rate - rate)
    for _ in range(num_trials):
        seed = next_seed(seed)
        record, record_rate = entries[seed % len(entries)]
        candidate = abs(record_rate - rate)
        if candidate < diff:
            hint, diff = record, candidate
    return hint, diff, seed


def _index_of(entries: Sequence[tuple[int, int]], record: int) -> int | None:
    for i, (r, _) in enumerate(entries):
        if r == record:
            return i
    return None


def insert_index(
    entries: Sequence[tuple[int, int]],
    rate: int,
    start: int = 0,
) -> int:
    """Index at which a record with ``rate`` keeps the list sorted.

    A new record goes after every existing record with the same rate. The
    walk begins at ``start`` and moves in whichever direction is needed.
    """
    i = max(0, min(start, len(entries)))
    while i > 0 and entries[i - 1][1] < rate:
        i -= 1
    while i < len(entries) and entries[i][1] >= rate:
        i += 1
    return i


def find_insert_position(
    entries: Sequence[tuple[int, int]],
    rate: int,
    prev_hint: int,
    next_hint: int,
) -> tuple[int, int]:
    """Return ``(upper, lower)`` neighbours for a new record with ``rate``.

    Unknown or zero hints fall back to a walk from the head of the list.
    """
    start = 0
    for hint in (prev_hint, next_hint):
        if hint:
            idx = _index_of(entries, hint)
            if idx is not None:
                start = idx
                break

    i = insert_index(entries, rate, start)
    upper = entries[i - 1][0] if i > 0 else 0
    lower = entries[i][0] if i < len(entries) else 0
    return upper, lower
