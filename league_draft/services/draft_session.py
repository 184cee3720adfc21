"""
Draft session state machine.

Every operation is a small frozen dataclass; apply(state, op) validates it against the
current status, runs it on a deep copy and returns (new_state, events). A raised
DraftError therefore never leaves a half-applied change behind: the caller still holds
the old state.

Status: setup -> in_progress -> complete. cancel returns to setup and discards picks and
volunteer assignments. The pool emptying during in_progress completes the draft.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from league_draft.models import (
    BoardCell,
    DraftSessionState,
    DraftStatus,
    Manager,
    PendingAssignment,
    Pick,
    Player,
    TeamRecord,
    VolunteerSlots,
)
from league_draft.roles import VolunteerRole
from league_draft.services import draft_board, roster_mutator
from league_draft.services.errors import ConflictError, NotFoundError, ValidationError
from league_draft.services.events import DraftEvent, EventKind
from league_draft.services.roster_mutator import MoveDecision
from league_draft.services.siblings import find_siblings
from league_draft.services.snake_order import rounds_needed, snake_order
from league_draft.services.volunteer_queue import (
    VolunteerOffer,
    assign_to_slot,
    build_offers,
    enqueue_bundle,
    validate_decisions,
)

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_ROUNDS = 2


# ---------- Operations ----------


@dataclass(frozen=True)
class ManagerSetup:
    """A manager as entered during setup. id None -> a temporary id is generated."""
    name: str
    id: str | None = None
    team_id: str | None = None


@dataclass(frozen=True)
class ConfigureManagers:
    managers: tuple[ManagerSetup, ...]


@dataclass(frozen=True)
class StartDraft:
    """Start picking. managers None keeps the configured list."""
    managers: tuple[ManagerSetup, ...] | None = None


@dataclass(frozen=True)
class EnterPick:
    """player: draft number (int) or player id (str), resolved against the pool."""
    manager_id: str
    player: int | str
    at: datetime | None = None


@dataclass(frozen=True)
class ResolveAssignment:
    """Decision for the head of the volunteer queue: {volunteer_id: role | None}."""
    decisions: Mapping[str, VolunteerRole | str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class SkipAssignment:
    pass


@dataclass(frozen=True)
class RemovePlayer:
    manager_id: str
    player_id: str


@dataclass(frozen=True)
class StageMove:
    from_manager_id: str
    to_manager_id: str
    player_id: str


@dataclass(frozen=True)
class ResolveMove:
    decision: MoveDecision = field(default_factory=MoveDecision)


@dataclass(frozen=True)
class AbortMove:
    pass


@dataclass(frozen=True)
class CancelDraft:
    pass


@dataclass(frozen=True)
class BindTeam:
    """Bind manager to an existing team for commit; team_id None unbinds."""
    manager_id: str
    team_id: str | None


Operation = (
    ConfigureManagers | StartDraft | EnterPick | ResolveAssignment | SkipAssignment | RemovePlayer
    | StageMove | ResolveMove | AbortMove | CancelDraft | BindTeam
)


# ---------- Valid statuses per operation ----------

_S, _P, _C = DraftStatus.SETUP, DraftStatus.IN_PROGRESS, DraftStatus.COMPLETE

_ALLOWED_STATUSES: dict[type, set[DraftStatus]] = {
    ConfigureManagers: {_S},
    StartDraft: {_S},
    EnterPick: {_P},
    ResolveAssignment: {_P, _C},
    SkipAssignment: {_P, _C},
    # Removing reopens the pool, which a complete draft cannot do (status only moves forward).
    RemovePlayer: {_P},
    StageMove: {_P, _C},
    ResolveMove: {_P, _C},
    AbortMove: {_P, _C},
    CancelDraft: {_P, _C},
    BindTeam: {_S, _C},
}

_ALLOWED_WHILE_MOVE_PENDING: set[type] = {ResolveMove, AbortMove, CancelDraft}


# ---------- Session construction ----------


def new_session(
    division_id: str,
    season_id: str,
    players: list[Player],
    teams: list[TeamRecord] | None = None,
    buffer_rounds: int = DEFAULT_BUFFER_ROUNDS,
) -> DraftSessionState:
    """
    Fresh session in setup. One manager is pre-created per existing team
    (named after the team's manager, or "Manager <team>"), already bound to it.
    """
    teams = list(teams or [])
    ordered = sorted(players, key=lambda p: p.draft_number)
    managers = [
        Manager(id=t.id, name=t.manager_name or f"Manager {t.name}", team_id=t.id)
        for t in teams
    ]
    return DraftSessionState(
        division_id=division_id,
        season_id=season_id,
        players=ordered,
        teams=teams,
        managers=managers,
        pool=list(ordered),
        buffer_rounds=buffer_rounds,
    )


# ---------- Reducer ----------


def apply(state: DraftSessionState, op: Operation) -> tuple[DraftSessionState, list[DraftEvent]]:
    """Validate op against state, run it on a copy, return (new_state, events)."""
    handler = _HANDLERS.get(type(op))
    if handler is None:
        raise ValidationError(f"Unknown draft operation: {type(op).__name__}")
    allowed = _ALLOWED_STATUSES[type(op)]
    if state.status not in allowed:
        allowed_s = ", ".join(sorted(s.value for s in allowed))
        raise ConflictError(
            f"Cannot {_op_label(op)} while draft is {state.status.value} (allowed: {allowed_s})"
        )
    if state.pending_move is not None and type(op) not in _ALLOWED_WHILE_MOVE_PENDING:
        raise ConflictError("A player move is awaiting volunteer reassignment; resolve or abort it first")
    new_state = copy.deepcopy(state)
    events = handler(new_state, op)
    return new_state, events


def _op_label(op: Operation) -> str:
    name = type(op).__name__
    return "".join(f" {c.lower()}" if c.isupper() else c for c in name).strip()


# ---------- Setup ----------


def _build_managers(state: DraftSessionState, setups: tuple[ManagerSetup, ...]) -> list[Manager]:
    used_ids = {s.id for s in setups if s.id}
    if len(used_ids) != len([s for s in setups if s.id]):
        raise ValidationError("Manager ids must be unique")
    bound: dict[str, str] = {}
    managers: list[Manager] = []
    temp_n = 0
    for setup in setups:
        manager_id = setup.id
        if not manager_id:
            temp_n += 1
            while f"temp-{temp_n}" in used_ids:
                temp_n += 1
            manager_id = f"temp-{temp_n}"
            used_ids.add(manager_id)
        if setup.team_id is not None:
            if state.team(setup.team_id) is None:
                raise NotFoundError(f"Team not found: {setup.team_id}")
            if setup.team_id in bound:
                raise ConflictError(f"Team {setup.team_id} is already bound to manager {bound[setup.team_id]}")
            bound[setup.team_id] = manager_id
        existing = state.manager(manager_id)
        managers.append(Manager(
            id=manager_id,
            name=setup.name.strip(),
            team_id=setup.team_id,
            # Keep slots only for a manager that already exists (none are filled during setup).
            slots=copy.deepcopy(existing.slots) if existing else VolunteerSlots(),
        ))
    return managers


def _configure(state: DraftSessionState, op: ConfigureManagers) -> list[DraftEvent]:
    state.managers = _build_managers(state, op.managers)
    return [DraftEvent(
        EventKind.MANAGERS_CONFIGURED,
        f"{len(state.managers)} manager(s) configured",
        {"manager_ids": state.manager_ids()},
    )]


def _start(state: DraftSessionState, op: StartDraft) -> list[DraftEvent]:
    if op.managers is not None:
        state.managers = _build_managers(state, op.managers)
    if not state.managers:
        raise ValidationError("Please add at least one manager")
    unnamed = [m.id for m in state.managers if not m.name.strip()]
    if unnamed:
        raise ValidationError(f"Please enter a name for all managers (missing: {', '.join(unnamed)})")

    rounds = rounds_needed(len(state.players), len(state.managers), state.buffer_rounds)
    state.board = draft_board.init_board(state.manager_ids(), rounds)
    state.current_round = 1
    state.status = DraftStatus.IN_PROGRESS
    events = [DraftEvent(
        EventKind.DRAFT_STARTED,
        f"Draft started with {len(state.managers)} manager(s), {len(state.players)} player(s), {rounds} round(s)",
        {"rounds": rounds, "order": snake_order(1, state.manager_ids())},
    )]
    logger.info(
        "Draft started division=%s season=%s managers=%d players=%d",
        state.division_id, state.season_id, len(state.managers), len(state.players),
    )
    if not state.pool:
        state.status = DraftStatus.COMPLETE
        events.append(DraftEvent(EventKind.DRAFT_COMPLETED, "No players to draft", {}))
    return events


# ---------- Picking ----------


def _resolve_player(pool: list[Player], designator: int | str) -> Player:
    if isinstance(designator, int) and not isinstance(designator, bool):
        match = next((p for p in pool if p.draft_number == designator), None)
        label = f"#{designator}"
    else:
        match = next((p for p in pool if p.id == designator), None)
        label = str(designator)
    if match is None:
        raise NotFoundError(f"Player {label} not found or already drafted")
    return match


def _require_manager(state: DraftSessionState, manager_id: str) -> Manager:
    manager = state.manager(manager_id)
    if manager is None:
        raise NotFoundError(f"Manager not found: {manager_id}")
    return manager


def _enter_pick(state: DraftSessionState, op: EnterPick) -> list[DraftEvent]:
    manager = _require_manager(state, op.manager_id)
    player = _resolve_player(state.pool, op.player)
    round_number = state.current_round
    if draft_board.has_picked(state.board, round_number, manager.id):
        raise ConflictError(f"{manager.name} has already picked in round {round_number}")

    siblings = find_siblings(player, state.pool)
    bundle = [player, *siblings]
    at = op.at or datetime.now(timezone.utc)
    picks = [
        Pick(
            player=p,
            manager_id=manager.id,
            pick_number=state.next_pick_number + i,
            round=round_number,
            timestamp=at,
            is_sibling_pick=i > 0,
        )
        for i, p in enumerate(bundle)
    ]
    state.next_pick_number += len(picks)
    manager.picks.extend(picks)
    state.pick_log.extend(picks)
    drafted_ids = {p.id for p in bundle}
    state.pool = [p for p in state.pool if p.id not in drafted_ids]
    draft_board.ensure_round(state.board, round_number, state.manager_ids())
    draft_board.record_cell(
        state.board, round_number, manager.id,
        BoardCell(player_id=player.id, sibling_ids=[s.id for s in siblings]),
    )

    events = [DraftEvent(
        EventKind.PLAYER_DRAFTED,
        f"{manager.name} drafted {player.name} (#{player.draft_number}) in round {round_number}",
        {"manager_id": manager.id, "player_id": player.id, "round": round_number, "pick_number": picks[0].pick_number},
    )]
    if siblings:
        names = ", ".join(f"{s.name} (#{s.draft_number})" for s in siblings)
        events.append(DraftEvent(
            EventKind.SIBLINGS_AUTO_DRAFTED,
            f"Sibling auto-draft: {player.name} was drafted along with sibling(s): {names}",
            {"manager_id": manager.id, "player_id": player.id, "sibling_ids": [s.id for s in siblings]},
        ))
    for item in enqueue_bundle(state.assignment_queue, bundle, manager.id):
        events.append(DraftEvent(
            EventKind.ASSIGNMENT_QUEUED,
            f"Volunteer assignment queued for {_player_name(state, item.player_id)}",
            item.to_dict(),
        ))
    logger.info(
        "Pick round=%d manager=%s player=%s siblings=%d",
        round_number, manager.id, player.id, len(siblings),
    )
    events.extend(_advance(state))
    return events


def _advance(state: DraftSessionState) -> list[DraftEvent]:
    """Complete the draft on an empty pool, else move past every complete round."""
    if not state.pool:
        state.status = DraftStatus.COMPLETE
        logger.info("Draft complete division=%s season=%s", state.division_id, state.season_id)
        return [DraftEvent(
            EventKind.DRAFT_COMPLETED,
            "All players drafted",
            {"rounds_used": state.current_round},
        )]
    events: list[DraftEvent] = []
    ids = state.manager_ids()
    while draft_board.is_round_complete(state.board, state.current_round, ids):
        state.current_round += 1
        draft_board.ensure_round(state.board, state.current_round, ids)
        events.append(DraftEvent(
            EventKind.ROUND_ADVANCED,
            f"Round {state.current_round} begins",
            {"round": state.current_round, "order": snake_order(state.current_round, ids)},
        ))
    return events


def _player_name(state: DraftSessionState, player_id: str) -> str:
    player = next((p for p in state.players if p.id == player_id), None)
    return player.name if player else player_id


# ---------- Volunteer queue ----------


@dataclass(frozen=True)
class AssignmentPrompt:
    """What the operator is asked next: the head queue item and its offers."""
    item: PendingAssignment
    player: Player
    manager_name: str
    offers: tuple[VolunteerOffer, ...]
    remaining: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.item.player_id,
            "manager_id": self.item.manager_id,
            "player": self.player.to_dict(),
            "manager_name": self.manager_name,
            "offers": [o.to_dict() for o in self.offers],
            "remaining": self.remaining,
        }


def next_assignment(state: DraftSessionState) -> AssignmentPrompt | None:
    """Head of the volunteer queue with offers, or None when idle."""
    if not state.assignment_queue:
        return None
    item = state.assignment_queue[0]
    manager = state.manager(item.manager_id)
    pick = manager.pick_for(item.player_id) if manager else None
    if manager is None or pick is None:
        return None
    return AssignmentPrompt(
        item=item,
        player=pick.player,
        manager_name=manager.name,
        offers=tuple(build_offers(pick.player)),
        remaining=len(state.assignment_queue),
    )


def _head_pick(state: DraftSessionState) -> tuple[PendingAssignment, Manager, Pick]:
    if not state.assignment_queue:
        raise ConflictError("No volunteer assignment is pending")
    item = state.assignment_queue[0]
    manager = _require_manager(state, item.manager_id)
    pick = manager.pick_for(item.player_id)
    if pick is None:
        raise ConflictError(f"Player {item.player_id} is no longer on {manager.name}'s roster")
    return item, manager, pick


def _resolve_assignment(state: DraftSessionState, op: ResolveAssignment) -> list[DraftEvent]:
    item, manager, pick = _head_pick(state)
    accepted = validate_decisions(pick.player, op.decisions)
    events: list[DraftEvent] = []
    for volunteer, role in accepted:
        if assign_to_slot(manager, volunteer, role):
            events.append(DraftEvent(
                EventKind.VOLUNTEER_ASSIGNED,
                f"{volunteer.name} assigned as {role.value} for {manager.name}",
                {"manager_id": manager.id, "volunteer_id": volunteer.id, "role": role.value},
            ))
    assigned_ids = {v.id for v, _ in accepted}
    declined = [o.volunteer.id for o in build_offers(pick.player) if o.volunteer.id not in assigned_ids]
    state.assignment_queue.pop(0)
    events.append(DraftEvent(
        EventKind.ASSIGNMENT_RESOLVED,
        f"Volunteer assignment done for {pick.player.name}",
        {**item.to_dict(), "declined_volunteer_ids": declined},
    ))
    return events


def _skip_assignment(state: DraftSessionState, op: SkipAssignment) -> list[DraftEvent]:
    return _resolve_assignment(state, ResolveAssignment())


# ---------- Roster corrections ----------


def _remove(state: DraftSessionState, op: RemovePlayer) -> list[DraftEvent]:
    return roster_mutator.remove_player(state, op.manager_id, op.player_id)


def _stage_move(state: DraftSessionState, op: StageMove) -> list[DraftEvent]:
    return roster_mutator.stage_move(state, op.from_manager_id, op.to_manager_id, op.player_id)


def _resolve_move(state: DraftSessionState, op: ResolveMove) -> list[DraftEvent]:
    return roster_mutator.resolve_move(state, op.decision)


def _abort_move(state: DraftSessionState, op: AbortMove) -> list[DraftEvent]:
    return roster_mutator.abort_move(state)


# ---------- Cancel / team binding ----------


def _cancel(state: DraftSessionState, op: CancelDraft) -> list[DraftEvent]:
    state.status = DraftStatus.SETUP
    state.current_round = 0
    state.board = []
    state.pick_log = []
    state.next_pick_number = 1
    state.assignment_queue = []
    state.pending_move = None
    state.pool = sorted(state.players, key=lambda p: p.draft_number)
    for manager in state.managers:
        manager.picks = []
        manager.slots = VolunteerSlots()
    logger.info("Draft cancelled division=%s season=%s", state.division_id, state.season_id)
    return [DraftEvent(EventKind.DRAFT_CANCELLED, "Draft cancelled; all picks discarded", {})]


def _bind_team(state: DraftSessionState, op: BindTeam) -> list[DraftEvent]:
    manager = _require_manager(state, op.manager_id)
    if op.team_id is not None:
        team = state.team(op.team_id)
        if team is None:
            raise NotFoundError(f"Team not found: {op.team_id}")
        holder = next((m for m in state.managers if m.team_id == op.team_id and m.id != manager.id), None)
        if holder is not None:
            raise ConflictError(f"Team {team.name} is already assigned to {holder.name}")
    manager.team_id = op.team_id
    return [DraftEvent(
        EventKind.TEAM_BOUND,
        f"{manager.name} bound to team {op.team_id}" if op.team_id else f"{manager.name} unbound from team",
        {"manager_id": manager.id, "team_id": op.team_id},
    )]


# ---------- Queries ----------


def round_order(state: DraftSessionState, round_number: int | None = None) -> list[str]:
    """Snake order for round_number (default: current round)."""
    return snake_order(round_number or max(state.current_round, 1), state.manager_ids())


def unbound_managers(state: DraftSessionState) -> list[Manager]:
    return [m for m in state.managers if not m.team_id]


_HANDLERS: dict[type, Callable[[DraftSessionState, Any], list[DraftEvent]]] = {
    ConfigureManagers: _configure,
    StartDraft: _start,
    EnterPick: _enter_pick,
    ResolveAssignment: _resolve_assignment,
    SkipAssignment: _skip_assignment,
    RemovePlayer: _remove,
    StageMove: _stage_move,
    ResolveMove: _resolve_move,
    AbortMove: _abort_move,
    CancelDraft: _cancel,
    BindTeam: _bind_team,
}
