"""
Sibling resolution for automatic co-drafting.
Only the current pool is searched, so siblings already drafted elsewhere are never pulled back.
"""
from __future__ import annotations

from league_draft.models import Player


def find_siblings(player: Player, pool: list[Player]) -> list[Player]:
    """Undrafted players sharing player's non-null family_id, in pool order, excluding player."""
    if not player.family_id:
        return []
    return [p for p in pool if p.family_id == player.family_id and p.id != player.id]


def siblings_on_roster(player: Player, roster: list[Player]) -> list[Player]:
    """Family members of player that are on the given roster (used for remove advisories)."""
    if not player.family_id:
        return []
    return [p for p in roster if p.family_id == player.family_id and p.id != player.id]
