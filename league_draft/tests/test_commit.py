"""
Tests for the commit coordinator: writes, preconditions, failure and resume via checkpoints.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from league_draft.models import DraftSessionState, DraftStatus
from league_draft.persistence.db import get_connection, init_db, set_db_path
from league_draft.persistence.repositories import (
    CommitCheckpointRepository,
    PlayerRepository,
    TeamRepository,
    VolunteerRepository,
)
from league_draft.roster_loader import load_roster_snapshot
from league_draft.services.commit import CommitCoordinator, fingerprint
from league_draft.services.draft_board import waiting_managers
from league_draft.services.draft_session import (
    BindTeam,
    EnterPick,
    ResolveAssignment,
    StageMove,
    StartDraft,
    apply,
    new_session,
    next_assignment,
    round_order,
)
from league_draft.services.errors import ConflictError, ValidationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB seeded with the sample roster."""
    db_path = tmp_path / "commit_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path, seed_path=PROJECT_ROOT / "data" / "sample_roster.json")
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def _complete_draft(state: DraftSessionState) -> DraftSessionState:
    """Each manager takes the lowest number left; every volunteer gets their first offered role."""
    while state.status == DraftStatus.IN_PROGRESS:
        waiting = set(waiting_managers(state.board, state.current_round, state.manager_ids()))
        manager_id = next(mid for mid in round_order(state) if mid in waiting)
        state, _ = apply(state, EnterPick(manager_id, state.pool[0].draft_number))
        prompt = next_assignment(state)
        while prompt is not None:
            state, _ = apply(state, ResolveAssignment({o.volunteer.id: o.allowed_roles[0] for o in prompt.offers}))
            prompt = next_assignment(state)
    return state


@pytest.fixture
def started(db_conn) -> DraftSessionState:
    snapshot = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring")
    state = new_session(snapshot.division_id, snapshot.season_id, snapshot.players, snapshot.teams)
    state, _ = apply(state, StartDraft())
    return state


@pytest.fixture
def completed(started) -> DraftSessionState:
    return _complete_draft(started)


def test_sample_draft_shape(completed):
    assert completed.manager_ids() == ["team-blue", "team-green", "team-red"]
    blue = completed.manager("team-blue")
    assert [p.player.id for p in blue.picks][:2] == ["p-adams-liam", "p-adams-noah"]
    assert blue.name == "Luis Garcia"
    assert blue.slots.team_parent.id == "v-fox-dana"


def test_commit_writes_players_volunteers_and_team(db_conn, completed):
    report = CommitCoordinator().commit(db_conn, "s1", completed)
    assert report.ok
    assert report.committed_manager_ids == ["team-blue", "team-green", "team-red"]
    assert report.players_written == 12
    assert report.volunteers_written == 4

    players = PlayerRepository()
    assert players.get(db_conn, "p-adams-noah").team_id == "team-blue"
    assert players.get(db_conn, "p-baker-emma").team_id == "team-green"
    volunteer = VolunteerRepository().get(db_conn, "v-garcia-luis")
    assert (volunteer.team_id, volunteer.role) == ("team-blue", "Manager")
    assert VolunteerRepository().get(db_conn, "v-baker-tom").role == "Assistant Coach"
    teams = TeamRepository()
    assert teams.get(db_conn, "team-blue").manager_name == "Luis Garcia"
    assert teams.get_volunteer_manager_id(db_conn, "team-blue") == "v-garcia-luis"
    assert teams.get(db_conn, "team-green").manager_name == "Manager Green Sea Turtles"
    assert teams.get_volunteer_manager_id(db_conn, "team-green") is None


def test_commit_requires_complete(db_conn, started):
    with pytest.raises(ConflictError):
        CommitCoordinator().commit(db_conn, "s1", started)


def test_commit_requires_all_teams_bound(db_conn, completed):
    state, _ = apply(completed, BindTeam("team-red", None))
    with pytest.raises(ValidationError) as exc:
        CommitCoordinator().commit(db_conn, "s1", state)
    assert "Manager Red Sox" in str(exc.value)


def test_failure_stops_and_retry_resumes(db_conn, completed, monkeypatch):
    original = PlayerRepository.assign_team

    def failing(self, conn, player_id, team_id):
        if team_id == "team-green":
            raise sqlite3.OperationalError("disk I/O error")
        return original(self, conn, player_id, team_id)

    monkeypatch.setattr(PlayerRepository, "assign_team", failing)
    coordinator = CommitCoordinator()
    report = coordinator.commit(db_conn, "s1", completed)
    assert not report.ok
    assert report.committed_manager_ids == ["team-blue"]
    assert report.failed_manager_id == "team-green"
    assert "disk I/O error" in report.error
    assert PlayerRepository().get(db_conn, "p-ito-hana").team_id is None
    assert set(CommitCheckpointRepository().load(db_conn, "s1")) == {"team-blue"}

    monkeypatch.undo()
    report = coordinator.commit(db_conn, "s1", completed)
    assert report.ok
    assert report.skipped_manager_ids == ["team-blue"]
    assert report.committed_manager_ids == ["team-green", "team-red"]
    assert PlayerRepository().get(db_conn, "p-ito-hana").team_id == "team-red"


def test_rerun_skips_unchanged_and_force_rewrites(db_conn, completed):
    coordinator = CommitCoordinator()
    coordinator.commit(db_conn, "s1", completed)
    report = coordinator.commit(db_conn, "s1", completed)
    assert report.committed_manager_ids == []
    assert report.skipped_manager_ids == ["team-blue", "team-green", "team-red"]
    report = coordinator.commit(db_conn, "s1", completed, force=True)
    assert report.committed_manager_ids == ["team-blue", "team-green", "team-red"]


def test_change_after_commit_recommits_affected_managers(db_conn, completed):
    coordinator = CommitCoordinator()
    coordinator.commit(db_conn, "s1", completed)
    state, _ = apply(completed, StageMove("team-red", "team-green", "p-ito-hana"))
    report = coordinator.commit(db_conn, "s1", state)
    assert report.skipped_manager_ids == ["team-blue"]
    assert report.committed_manager_ids == ["team-green", "team-red"]
    assert PlayerRepository().get(db_conn, "p-ito-hana").team_id == "team-green"


def test_fingerprint_tracks_roster_and_name(completed):
    manager = completed.manager("team-green")
    before = fingerprint(manager)
    manager.name = "Someone Else"
    assert fingerprint(manager) != before
