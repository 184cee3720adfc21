"""
Shared fixtures: small in-memory rosters and a started draft.
"""
from __future__ import annotations

from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from league_draft.models import DraftSessionState, Player, TeamRecord, VolunteerSummary
from league_draft.services.draft_session import ManagerSetup, StartDraft, apply, new_session


@pytest.fixture
def make_volunteer():
    def _make(vid: str, role: str, family_id: str | None = None, name: str | None = None) -> VolunteerSummary:
        return VolunteerSummary(id=vid, name=name or f"Vol {vid}", family_id=family_id, derived_role=role)
    return _make


@pytest.fixture
def make_player():
    def _make(
        pid: str,
        draft_number: int,
        family_id: str | None = None,
        volunteers: tuple[VolunteerSummary, ...] = (),
    ) -> Player:
        return Player(
            id=pid,
            first_name=pid.upper(),
            last_name="Test",
            draft_number=draft_number,
            family_id=family_id,
            volunteers=tuple(volunteers),
        )
    return _make


@pytest.fixture
def teams() -> list[TeamRecord]:
    return [
        TeamRecord(id="t-red", name="Red"),
        TeamRecord(id="t-blue", name="Blue"),
        TeamRecord(id="t-green", name="Green"),
    ]


@pytest.fixture
def start_draft(teams):
    """start_draft(players, manager_ids=("A", "B", "C"), buffer_rounds=2) -> in-progress state."""
    def _start(
        players: list[Player],
        manager_ids: tuple[str, ...] = ("A", "B", "C"),
        buffer_rounds: int = 2,
    ) -> DraftSessionState:
        state = new_session("div-1", "season-1", players, teams, buffer_rounds)
        setups = tuple(ManagerSetup(name=f"Manager {mid}", id=mid) for mid in manager_ids)
        state, _ = apply(state, StartDraft(setups))
        return state
    return _start


def apply_all(state: DraftSessionState, *ops) -> DraftSessionState:
    for op in ops:
        state, _ = apply(state, op)
    return state


@pytest.fixture
def run():
    """run(state, *ops) -> state after applying ops in order."""
    return apply_all
