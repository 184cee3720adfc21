"""
Mid-draft roster corrections: remove a player, or move one between managers.

Both cascade into volunteer slots. Remove clears the slots held by the player's own
volunteers and returns the player to the pool; siblings stay put. Move is two-phase
when the player's volunteers hold slots on the source manager: stage_move records a
PendingMove, and nothing is relocated until resolve_move supplies a decision
(or abort_move drops it).

Functions here mutate the state they are given; the reducer hands them a private copy.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Mapping

from league_draft.models import DraftSessionState, Manager, PendingAssignment, PendingMove, Pick, Player
from league_draft.roles import VolunteerRole
from league_draft.services import draft_board
from league_draft.services.errors import ConflictError, NotFoundError, ValidationError
from league_draft.services.events import DraftEvent, EventKind
from league_draft.services.siblings import siblings_on_roster
from league_draft.services.volunteer_queue import (
    assign_to_slot,
    clear_player_volunteers,
    drop_player_items,
    holdings_for_player,
    validate_decisions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveDecision:
    """
    Operator's answer to a staged move.
    assignments: {volunteer_id: role | None} applied on the destination manager.
    unassign_all: clear the volunteers from the source and assign nothing.
    """
    assignments: Mapping[str, VolunteerRole | str | None] = field(default_factory=dict)
    unassign_all: bool = False


def _require_manager(state: DraftSessionState, manager_id: str) -> Manager:
    manager = state.manager(manager_id)
    if manager is None:
        raise NotFoundError(f"Manager not found: {manager_id}")
    return manager


def _require_pick(manager: Manager, player_id: str) -> Pick:
    pick = manager.pick_for(player_id)
    if pick is None:
        raise NotFoundError(f"Player {player_id} is not on {manager.name}'s roster")
    return pick


def _unassigned_events(manager: Manager, cleared) -> list[DraftEvent]:
    return [
        DraftEvent(
            EventKind.VOLUNTEER_UNASSIGNED,
            f"{h.volunteer.name} removed as {h.role.value} from {manager.name}",
            {"manager_id": manager.id, "volunteer_id": h.volunteer.id, "role": h.role.value},
        )
        for h in cleared
    ]


def _drop_queue_items(state: DraftSessionState, player: Player) -> list[DraftEvent]:
    dropped = drop_player_items(state.assignment_queue, player.id)
    if not dropped:
        return []
    return [DraftEvent(
        EventKind.ASSIGNMENT_DROPPED,
        f"Pending volunteer assignment for {player.name} discarded",
        {"player_id": player.id},
    )]


# ---------- Remove ----------


def remove_player(state: DraftSessionState, manager_id: str, player_id: str) -> list[DraftEvent]:
    """Take player off manager's roster and put them back in the pool (sorted by draft number)."""
    manager = _require_manager(state, manager_id)
    pick = _require_pick(manager, player_id)
    player = pick.player

    manager.picks = [p for p in manager.picks if p.player.id != player_id]
    state.pick_log = [p for p in state.pick_log if p.player.id != player_id]
    draft_board.detach_player(state.board, player_id)
    cleared = clear_player_volunteers(manager, player)
    state.pool = sorted([*state.pool, player], key=lambda p: p.draft_number)

    events = [DraftEvent(
        EventKind.PLAYER_REMOVED,
        f"Removed {player.name} (#{player.draft_number}) from {manager.name}",
        {"manager_id": manager.id, "player_id": player.id},
    )]
    events.extend(_unassigned_events(manager, cleared))
    events.extend(_drop_queue_items(state, player))
    remaining = siblings_on_roster(player, [p.player for p in manager.picks])
    if remaining:
        names = ", ".join(f"{s.name} (#{s.draft_number})" for s in remaining)
        events.append(DraftEvent(
            EventKind.SIBLINGS_REMAINING,
            f"Sibling(s) still on {manager.name}: {names}. Only {player.name} was removed.",
            {"manager_id": manager.id, "player_id": player.id, "sibling_ids": [s.id for s in remaining]},
        ))
    logger.info("Removed player %s from manager %s (%d slot(s) cleared)", player.id, manager.id, len(cleared))
    return events


# ---------- Move ----------


def stage_move(
    state: DraftSessionState, from_manager_id: str, to_manager_id: str, player_id: str
) -> list[DraftEvent]:
    """
    Begin moving player from one manager to another.
    With no slot-holding volunteers the move completes now; otherwise a PendingMove is
    recorded and the roster is left untouched.
    """
    source = _require_manager(state, from_manager_id)
    dest = _require_manager(state, to_manager_id)
    if source.id == dest.id:
        raise ValidationError("Source and destination manager must differ")
    pick = _require_pick(source, player_id)

    required = holdings_for_player(source, pick.player)
    if not required:
        return _relocate(state, source, dest, pick)

    state.pending_move = PendingMove(
        from_manager_id=source.id,
        to_manager_id=dest.id,
        player_id=player_id,
        required=required,
    )
    names = ", ".join(f"{h.volunteer.name} ({h.role.value})" for h in required)
    return [DraftEvent(
        EventKind.MOVE_STAGED,
        f"Moving {pick.player.name} to {dest.name} needs a decision for: {names}",
        {"move": state.pending_move.to_dict()},
    )]


def resolve_move(state: DraftSessionState, decision: MoveDecision) -> list[DraftEvent]:
    """Finish the staged move using decision; all validation happens before any change."""
    pending = state.pending_move
    if pending is None:
        raise ConflictError("No move is awaiting volunteer reassignment")
    source = _require_manager(state, pending.from_manager_id)
    dest = _require_manager(state, pending.to_manager_id)
    pick = _require_pick(source, pending.player_id)

    accepted = [] if decision.unassign_all else validate_decisions(pick.player, decision.assignments)

    cleared = clear_player_volunteers(source, pick.player)
    events = _unassigned_events(source, cleared)
    events.extend(_relocate(state, source, dest, pick))
    for volunteer, role in accepted:
        if assign_to_slot(dest, volunteer, role):
            events.append(DraftEvent(
                EventKind.VOLUNTEER_ASSIGNED,
                f"{volunteer.name} assigned as {role.value} for {dest.name}",
                {"manager_id": dest.id, "volunteer_id": volunteer.id, "role": role.value},
            ))
    state.pending_move = None
    return events


def abort_move(state: DraftSessionState) -> list[DraftEvent]:
    """Drop the staged move; the player stays on the source manager unchanged."""
    pending = state.pending_move
    if pending is None:
        raise ConflictError("No move is awaiting volunteer reassignment")
    state.pending_move = None
    return [DraftEvent(
        EventKind.MOVE_ABORTED,
        "Move cancelled",
        {"player_id": pending.player_id, "manager_id": pending.from_manager_id},
    )]


def _relocate(state: DraftSessionState, source: Manager, dest: Manager, pick: Pick) -> list[DraftEvent]:
    moved = dataclasses.replace(pick, manager_id=dest.id)
    source.picks = [p for p in source.picks if p.player.id != pick.player.id]
    dest.picks.append(moved)
    state.pick_log = [moved if p.player.id == pick.player.id else p for p in state.pick_log]
    events = [DraftEvent(
        EventKind.PLAYER_MOVED,
        f"Moved {pick.player.name} from {source.name} to {dest.name}",
        {"player_id": pick.player.id, "from_manager_id": source.id, "to_manager_id": dest.id},
    )]
    # Queued volunteer work follows the player.
    if any(item.player_id == pick.player.id for item in state.assignment_queue):
        state.assignment_queue = [
            PendingAssignment(item.player_id, dest.id) if item.player_id == pick.player.id else item
            for item in state.assignment_queue
        ]
        events.append(DraftEvent(
            EventKind.ASSIGNMENT_QUEUED,
            f"Pending volunteer assignment for {pick.player.name} now targets {dest.name}",
            {"player_id": pick.player.id, "manager_id": dest.id},
        ))
    logger.info("Moved player %s from manager %s to %s", pick.player.id, source.id, dest.id)
    return events
