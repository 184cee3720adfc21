"""
Volunteer assignment queue and role-slot rules.

Drafting a player whose family has eligible volunteers queues a PendingAssignment.
The operator handles the head item one at a time: each of the player's volunteers is
offered only the slot their own role maps to, and the decision is applied to the
drafting manager. Manager / Team Parent overwrite (last write wins); Assistant Coach
is a set keyed by volunteer id.

The same slot rules are reused when a move hands volunteers to a new manager.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from league_draft.models import Manager, PendingAssignment, Player, SlotHolding, VolunteerSummary
from league_draft.roles import VolunteerRole, allowed_target_roles, parse_role
from league_draft.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VolunteerOffer:
    """One volunteer and the slots they may be placed in."""
    volunteer: VolunteerSummary
    allowed_roles: tuple[VolunteerRole, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "volunteer": self.volunteer.to_dict(),
            "allowed_roles": [r.value for r in self.allowed_roles],
        }


# ---------- Eligibility ----------


def eligible_volunteers(player: Player) -> list[VolunteerSummary]:
    """Volunteer entries on player whose role maps to a draft slot."""
    return [v for v in player.volunteers if allowed_target_roles(v.effective_role)]


def has_eligible_volunteers(player: Player) -> bool:
    return bool(eligible_volunteers(player))


def build_offers(player: Player) -> list[VolunteerOffer]:
    """
    Offers for one player, one per volunteer id (first-seen order).
    A volunteer listed once per eligible role gets the union of those roles.
    """
    by_id: dict[str, tuple[VolunteerSummary, set[VolunteerRole]]] = {}
    for v in eligible_volunteers(player):
        entry = by_id.setdefault(v.id, (v, set()))
        entry[1].update(allowed_target_roles(v.effective_role))
    return [
        VolunteerOffer(volunteer=v, allowed_roles=tuple(r for r in VolunteerRole if r in roles))
        for v, roles in by_id.values()
    ]


# ---------- Queue ----------


def enqueue_bundle(
    queue: list[PendingAssignment], players: list[Player], manager_id: str
) -> list[PendingAssignment]:
    """Append an item for each player with eligible volunteers, in bundle order. Returns the new items."""
    added = [PendingAssignment(player_id=p.id, manager_id=manager_id) for p in players if has_eligible_volunteers(p)]
    queue.extend(added)
    return added


def drop_player_items(queue: list[PendingAssignment], player_id: str) -> list[PendingAssignment]:
    """Remove queued items for player_id in place; returns the dropped items."""
    dropped = [item for item in queue if item.player_id == player_id]
    queue[:] = [item for item in queue if item.player_id != player_id]
    return dropped


# ---------- Decisions ----------


def validate_decisions(
    player: Player, decisions: Mapping[str, VolunteerRole | str | None]
) -> list[tuple[VolunteerSummary, VolunteerRole]]:
    """
    Check a {volunteer_id: role | None} decision against player's offers.
    None (or empty string) declines that volunteer. Raises before anything is applied.
    """
    offers = {o.volunteer.id: o for o in build_offers(player)}
    accepted: list[tuple[VolunteerSummary, VolunteerRole]] = []
    for volunteer_id, raw_role in decisions.items():
        offer = offers.get(volunteer_id)
        if offer is None:
            raise NotFoundError(f"Volunteer {volunteer_id} is not an eligible volunteer of player {player.id}")
        if raw_role is None or raw_role == "":
            continue
        role = parse_role(raw_role)
        if role is None or role not in offer.allowed_roles:
            allowed = ", ".join(r.value for r in offer.allowed_roles)
            raise ValidationError(
                f"{offer.volunteer.name} cannot be assigned as {raw_role}; allowed: {allowed}"
            )
        accepted.append((_entry_for_role(player, volunteer_id, role) or offer.volunteer, role))
    return accepted


def _entry_for_role(player: Player, volunteer_id: str, role: VolunteerRole) -> VolunteerSummary | None:
    for v in player.volunteers:
        if v.id == volunteer_id and role in allowed_target_roles(v.effective_role):
            return v
    return None


# ---------- Slot rules ----------


def assign_to_slot(manager: Manager, volunteer: VolunteerSummary, role: VolunteerRole) -> bool:
    """
    Place volunteer in manager's slot for role. Returns False only for an Assistant Coach
    already present (no-op). Binding a Manager volunteer also renames the manager.
    """
    slots = manager.slots
    if role == VolunteerRole.MANAGER:
        slots.manager = volunteer
        manager.name = volunteer.name
    elif role == VolunteerRole.TEAM_PARENT:
        slots.team_parent = volunteer
    else:
        if any(v.id == volunteer.id for v in slots.assistant_coaches):
            return False
        slots.assistant_coaches.append(volunteer)
    logger.info("Assigned volunteer %s as %s for manager %s", volunteer.name, role.value, manager.id)
    return True


def holdings_for_player(manager: Manager, player: Player) -> list[SlotHolding]:
    """Slots on manager currently occupied by one of player's volunteers."""
    ids = {v.id for v in player.volunteers}
    return [h for h in manager.slots.holdings() if h.volunteer.id in ids]


def clear_player_volunteers(manager: Manager, player: Player) -> list[SlotHolding]:
    """Vacate every slot on manager held by one of player's volunteers; returns what was cleared."""
    cleared = holdings_for_player(manager, player)
    ids = {h.volunteer.id for h in cleared}
    slots = manager.slots
    if slots.manager is not None and slots.manager.id in ids:
        slots.manager = None
    if slots.team_parent is not None and slots.team_parent.id in ids:
        slots.team_parent = None
    slots.assistant_coaches = [v for v in slots.assistant_coaches if v.id not in ids]
    return cleared
