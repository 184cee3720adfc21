"""
Data models for the draft engine.
Domain objects only; no persistence or API logic.

Draft-session-centric architecture: a session drafts one division's players
for one season; managers pick in snake order; parent-volunteers ride along
with their children and are bound to role slots on the drafting manager.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from league_draft.roles import VolunteerRole


# ---------- Draft status (state machine) ----------
class DraftStatus(str, Enum):
    """Session lifecycle: setup → in_progress → complete. cancel() returns to setup."""
    SETUP = "setup"              # Managers being named, teams not yet bound
    IN_PROGRESS = "in_progress"  # Picking
    COMPLETE = "complete"        # Pool empty; pending team binding + commit


# ---------- VolunteerSummary ----------
@dataclass(frozen=True)
class VolunteerSummary:
    """
    A parent-volunteer as seen from one player.
    derived_role is resolved by the loader from interested_roles; the same volunteer id
    may appear on several siblings, and once per eligible role.
    """
    id: str
    name: str
    family_id: str | None = None
    role: str | None = None  # declared role on the volunteer record
    derived_role: str | None = None
    email: str | None = None
    phone: str | None = None

    @property
    def effective_role(self) -> str | None:
        return self.derived_role or self.role

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "family_id": self.family_id,
            "role": self.role,
            "derived_role": self.derived_role,
        }
        if self.email is not None:
            d["email"] = self.email
        if self.phone is not None:
            d["phone"] = self.phone
        return d


# ---------- Player ----------
@dataclass(frozen=True)
class Player:
    """
    A registered player in the division being drafted.
    draft_number is the 1-based number the operator types at the board.
    Read-mostly: only the team assignment is written back, at commit.
    """
    id: str
    first_name: str
    last_name: str
    draft_number: int
    family_id: str | None = None
    birth_date: date | None = None
    gender: str | None = None
    is_travel_player: bool = False
    is_new_player: bool = False
    volunteers: tuple[VolunteerSummary, ...] = ()

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "draft_number": self.draft_number,
            "family_id": self.family_id,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "gender": self.gender,
            "is_travel_player": self.is_travel_player,
            "is_new_player": self.is_new_player,
            "volunteers": [v.to_dict() for v in self.volunteers],
        }


# ---------- TeamRecord ----------
@dataclass(frozen=True)
class TeamRecord:
    """An existing team in the division; managers are bound to one before commit."""
    id: str
    name: str
    manager_name: str | None = None
    color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.manager_name is not None:
            d["manager_name"] = self.manager_name
        if self.color is not None:
            d["color"] = self.color
        return d


# ---------- Pick ----------
@dataclass(frozen=True)
class Pick:
    """
    One drafted player. Immutable; a move produces a copy with the new manager_id.
    Siblings drafted alongside the chosen player share the round and a consecutive
    pick-number block, with is_sibling_pick set.
    """
    player: Player
    manager_id: str
    pick_number: int
    round: int
    timestamp: datetime
    is_sibling_pick: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player.id,
            "player_name": self.player.name,
            "draft_number": self.player.draft_number,
            "manager_id": self.manager_id,
            "pick_number": self.pick_number,
            "round": self.round,
            "timestamp": self.timestamp.isoformat(),
            "is_sibling_pick": self.is_sibling_pick,
        }


# ---------- VolunteerSlots ----------
@dataclass
class VolunteerSlots:
    """Role slots on one manager: at most one manager, at most one team parent, a set of assistant coaches."""
    manager: VolunteerSummary | None = None
    team_parent: VolunteerSummary | None = None
    assistant_coaches: list[VolunteerSummary] = field(default_factory=list)

    def holdings(self) -> list[SlotHolding]:
        """Occupied slots in commit order: manager, team parent, then assistant coaches."""
        out: list[SlotHolding] = []
        if self.manager is not None:
            out.append(SlotHolding(self.manager, VolunteerRole.MANAGER))
        if self.team_parent is not None:
            out.append(SlotHolding(self.team_parent, VolunteerRole.TEAM_PARENT))
        out.extend(SlotHolding(v, VolunteerRole.ASSISTANT_COACH) for v in self.assistant_coaches)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "manager": self.manager.to_dict() if self.manager else None,
            "team_parent": self.team_parent.to_dict() if self.team_parent else None,
            "assistant_coaches": [v.to_dict() for v in self.assistant_coaches],
        }


@dataclass(frozen=True)
class SlotHolding:
    """A volunteer occupying one role slot."""
    volunteer: VolunteerSummary
    role: VolunteerRole

    def to_dict(self) -> dict[str, Any]:
        return {"volunteer": self.volunteer.to_dict(), "role": self.role.value}


# ---------- Manager ----------
@dataclass
class Manager:
    """
    In-memory drafting manager. id is a temporary id or an existing team id.
    team_id is the team this manager's roster is written to at commit.
    """
    id: str
    name: str
    team_id: str | None = None
    picks: list[Pick] = field(default_factory=list)
    slots: VolunteerSlots = field(default_factory=VolunteerSlots)

    def pick_for(self, player_id: str) -> Pick | None:
        return next((p for p in self.picks if p.player.id == player_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "team_id": self.team_id,
            "picks": [p.to_dict() for p in self.picks],
            "volunteers": self.slots.to_dict(),
        }


# ---------- Draft board ----------
@dataclass
class BoardCell:
    """What a manager selected in one round: the chosen player plus auto-drafted siblings."""
    player_id: str
    sibling_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"player_id": self.player_id, "sibling_ids": list(self.sibling_ids)}


@dataclass
class DraftRound:
    """One row of the board: manager_id -> cell, None while the manager is still waiting."""
    round: int
    cells: dict[str, BoardCell | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "cells": {mid: (c.to_dict() if c else None) for mid, c in self.cells.items()},
        }


# ---------- Queued work ----------
@dataclass(frozen=True)
class PendingAssignment:
    """A drafted player whose volunteers still need a role decision for manager_id."""
    player_id: str
    manager_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"player_id": self.player_id, "manager_id": self.manager_id}


@dataclass
class PendingMove:
    """
    A staged move waiting on a volunteer reassignment decision.
    required lists the player's volunteers currently holding slots on the source manager.
    """
    from_manager_id: str
    to_manager_id: str
    player_id: str
    required: list[SlotHolding] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_manager_id": self.from_manager_id,
            "to_manager_id": self.to_manager_id,
            "player_id": self.player_id,
            "required": [h.to_dict() for h in self.required],
        }


# ---------- DraftSessionState ----------
@dataclass
class DraftSessionState:
    """
    Everything one draft session knows. Owned by the reducer in services.draft_session;
    every operation returns a new instance rather than mutating the caller's.
    """
    division_id: str
    season_id: str
    players: list[Player] = field(default_factory=list)  # full snapshot, draft-number order
    teams: list[TeamRecord] = field(default_factory=list)
    managers: list[Manager] = field(default_factory=list)  # setup order = odd-round order
    status: DraftStatus = DraftStatus.SETUP
    pool: list[Player] = field(default_factory=list)
    board: list[DraftRound] = field(default_factory=list)
    current_round: int = 0
    pick_log: list[Pick] = field(default_factory=list)
    next_pick_number: int = 1
    assignment_queue: list[PendingAssignment] = field(default_factory=list)
    pending_move: PendingMove | None = None
    buffer_rounds: int = 2

    def manager(self, manager_id: str) -> Manager | None:
        return next((m for m in self.managers if m.id == manager_id), None)

    def manager_ids(self) -> list[str]:
        return [m.id for m in self.managers]

    def team(self, team_id: str) -> TeamRecord | None:
        return next((t for t in self.teams if t.id == team_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "division_id": self.division_id,
            "season_id": self.season_id,
            "status": self.status.value,
            "current_round": self.current_round,
            "managers": [m.to_dict() for m in self.managers],
            "teams": [t.to_dict() for t in self.teams],
            "pool": [p.to_dict() for p in self.pool],
            "board": [r.to_dict() for r in self.board],
            "pick_log": [p.to_dict() for p in self.pick_log],
            "assignment_queue": [a.to_dict() for a in self.assignment_queue],
            "pending_move": self.pending_move.to_dict() if self.pending_move else None,
            "total_players": len(self.players),
            "drafted_count": len(self.pick_log),
        }


# ---------- Stored records (persistence rows) ----------
@dataclass
class Division:
    id: str
    name: str
    created_at: datetime


@dataclass
class Season:
    id: str
    name: str
    created_at: datetime


@dataclass
class PlayerRecord:
    """A player row as stored; team_id is NULL until a draft commits it."""
    id: str
    division_id: str
    season_id: str
    first_name: str
    last_name: str
    family_id: str | None = None
    birth_date: date | None = None
    gender: str | None = None
    is_travel_player: bool = False
    is_new_player: bool = False
    team_id: str | None = None


@dataclass
class VolunteerRecord:
    """
    A volunteer row as stored. interested_roles is the free-text registration answer;
    role and team_id are written by commit.
    """
    id: str
    division_id: str
    season_id: str
    name: str
    family_id: str | None = None
    email: str | None = None
    phone: str | None = None
    role: str | None = None
    interested_roles: str | None = None
    team_id: str | None = None
