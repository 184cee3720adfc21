"""
Tests for snake ordering and board sizing.
"""
from __future__ import annotations

import pytest

from league_draft.services.errors import ValidationError
from league_draft.services.snake_order import rounds_needed, snake_order


def test_odd_rounds_use_setup_order():
    assert snake_order(1, ["A", "B", "C"]) == ["A", "B", "C"]
    assert snake_order(3, ["A", "B", "C"]) == ["A", "B", "C"]


def test_even_rounds_reverse():
    assert snake_order(2, ["A", "B", "C"]) == ["C", "B", "A"]
    assert snake_order(4, ["A", "B"]) == ["B", "A"]


def test_does_not_mutate_input():
    ids = ["A", "B", "C"]
    snake_order(2, ids)
    assert ids == ["A", "B", "C"]


def test_single_manager():
    assert snake_order(1, ["A"]) == ["A"]
    assert snake_order(2, ["A"]) == ["A"]


def test_round_below_one_rejected():
    with pytest.raises(ValidationError):
        snake_order(0, ["A", "B"])


def test_rounds_needed():
    assert rounds_needed(10, 3) == 4
    assert rounds_needed(9, 3) == 3
    assert rounds_needed(10, 3, buffer_rounds=2) == 6
    assert rounds_needed(0, 3, buffer_rounds=2) == 2


def test_rounds_needed_requires_managers():
    with pytest.raises(ValidationError):
        rounds_needed(5, 0)
