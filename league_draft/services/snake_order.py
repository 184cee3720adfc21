"""
Snake draft ordering.

Odd rounds pick in setup order, even rounds in reverse, so the manager who picks
last in one round picks first in the next. Pure function of the round number and
the current manager list; nothing is cached, so editing managers during setup
cannot leave a stale order behind.
"""
from __future__ import annotations

import math

from league_draft.services.errors import ValidationError


def snake_order(round_number: int, manager_ids: list[str]) -> list[str]:
    """
    Managers in the order they pick in round_number (1-based).
    Example with [A, B, C]: round 1 -> [A, B, C], round 2 -> [C, B, A], round 3 -> [A, B, C].
    """
    if round_number < 1:
        raise ValidationError(f"Round must be >= 1 (got {round_number})")
    ids = list(manager_ids)
    if round_number % 2 == 0:
        ids.reverse()
    return ids


def rounds_needed(player_count: int, manager_count: int, buffer_rounds: int = 0) -> int:
    """Rows to allocate on the board: ceil(players / managers) plus spare rounds."""
    if manager_count < 1:
        raise ValidationError("Need at least one manager to size the draft board")
    return math.ceil(player_count / manager_count) + max(buffer_rounds, 0)
