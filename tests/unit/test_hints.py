"""Unit tests for hint search — pure functions, no I/O."""
from __future__ import annotations

from leverage_adapter.protocols.memory.hints import (
    approx_hint,
    find_insert_position,
    insert_index,
    next_seed,
)

# (record, rate), highest rate first
ENTRIES = [(1, 900), (2, 700), (3, 700), (4, 400), (5, 100)]


class TestApproxHint:
    def test_empty_list(self) -> None:
        assert approx_hint([], 500, 10, 7) == (0, 0, 7)

    def test_deterministic_for_seed(self) -> None:
        assert approx_hint(ENTRIES, 450, 20, 3) == approx_hint(ENTRIES, 450, 20, 3)

    def test_zero_trials_returns_tail(self) -> None:
        assert approx_hint(ENTRIES, 450, 0, 3) == (5, 350, 3)

    def test_enough_trials_find_nearest(self) -> None:
        hint, diff, _ = approx_hint(ENTRIES, 420, 200, 11)
        assert hint == 4
        assert diff == 20

    def test_seed_advances(self) -> None:
        _, _, seed = approx_hint(ENTRIES, 420, 2, 11)
        assert seed == next_seed(next_seed(11))


class TestInsertIndex:
    def test_after_equal_rates(self) -> None:
        assert insert_index(ENTRIES, 700) == 3

    def test_head_and_tail(self) -> None:
        assert insert_index(ENTRIES, 1000) == 0
        assert insert_index(ENTRIES, 50) == 5

    def test_start_position_does_not_change_result(self) -> None:
        for start in range(len(ENTRIES) + 1):
            assert insert_index(ENTRIES, 500, start) == 3


class TestFindInsertPosition:
    def test_middle(self) -> None:
        assert find_insert_position(ENTRIES, 500, 4, 4) == (3, 4)

    def test_head(self) -> None:
        assert find_insert_position(ENTRIES, 950, 5, 5) == (0, 1)

    def test_tail(self) -> None:
        assert find_insert_position(ENTRIES, 10, 1, 1) == (5, 0)

    def test_unknown_hint_walks_from_head(self) -> None:
        assert find_insert_position(ENTRIES, 500, 99, 0) == (3, 4)

    def test_empty_list(self) -> None:
        assert find_insert_position([], 500, 0, 0) == (0, 0)
