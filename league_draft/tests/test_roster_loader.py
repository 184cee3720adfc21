"""
Tests for the roster snapshot loader and JSON seed import.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from league_draft.models import PlayerRecord, VolunteerRecord
from league_draft.persistence.db import get_connection, init_db, set_db_path
from league_draft.persistence.repositories import (
    DivisionRepository,
    PlayerRepository,
    SeasonRepository,
    TeamRepository,
    VolunteerRepository,
)
from league_draft.roles import VolunteerRole
from league_draft.roster_loader import expand_volunteer, load_roster_snapshot, volunteer_draft_roles
from league_draft.services.errors import NotFoundError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SAMPLE = PROJECT_ROOT / "data" / "sample_roster.json"


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "loader_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path, seed_path=SAMPLE)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def test_players_numbered_by_last_then_first_name(db_conn):
    snapshot = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring")
    names = [(p.draft_number, p.name) for p in snapshot.players]
    assert names[:3] == [(1, "Liam Adams"), (2, "Noah Adams"), (3, "Emma Baker")]
    assert names[7:10] == [(8, "Ethan Garcia"), (9, "Mateo Garcia"), (10, "Sofia Garcia")]
    assert len(snapshot.players) == 12


def test_teams_loaded(db_conn):
    snapshot = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring")
    assert [t.id for t in snapshot.teams] == ["team-blue", "team-green", "team-red"]


def test_volunteers_expanded_per_derived_role(db_conn):
    snapshot = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring")
    liam = next(p for p in snapshot.players if p.id == "p-adams-liam")
    noah = next(p for p in snapshot.players if p.id == "p-adams-noah")
    assert [(v.id, v.derived_role) for v in liam.volunteers] == [
        ("v-adams-sarah", "Manager"),
        ("v-adams-sarah", "Team Parent"),
    ]
    assert noah.volunteers == liam.volunteers


def test_declared_and_json_roles(db_conn):
    snapshot = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring")
    by_id = {p.id: p for p in snapshot.players}
    assert [v.derived_role for v in by_id["p-baker-emma"].volunteers] == ["Assistant Coach"]
    assert [v.derived_role for v in by_id["p-chen-oliver"].volunteers] == ["Assistant Coach"]
    # Kim Hill only volunteered for non-draft roles
    assert by_id["p-hill-jack"].volunteers == ()
    assert by_id["p-evans-lucas"].volunteers == ()


def test_assigned_players_excluded_by_default(db_conn):
    PlayerRepository().assign_team(db_conn, "p-ito-hana", "team-red")
    snapshot = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring")
    assert "p-ito-hana" not in [p.id for p in snapshot.players]
    full = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring", include_assigned=True)
    assert "p-ito-hana" in [p.id for p in full.players]


def test_unknown_division(db_conn):
    with pytest.raises(NotFoundError):
        load_roster_snapshot(db_conn, "div-nope", "season-2026-spring")


def test_seed_import_is_idempotent(db_conn):
    init_db(seed_path=SAMPLE)
    snapshot = load_roster_snapshot(db_conn, "div-10u", "season-2026-spring")
    assert len(snapshot.players) == 12


def test_volunteer_draft_roles_merges_declared_role():
    record = VolunteerRecord(
        id="v1", division_id="d", season_id="s", name="Alex",
        role="Coach", interested_roles="Team Parent\nSnack Bar",
    )
    assert volunteer_draft_roles(record) == [VolunteerRole.ASSISTANT_COACH, VolunteerRole.TEAM_PARENT]
    assert [v.derived_role for v in expand_volunteer(record)] == ["Assistant Coach", "Team Parent"]


def test_player_repository_round_trip(db_conn):
    repo = PlayerRepository()
    repo.create(db_conn, PlayerRecord(
        id="p-new", division_id="div-10u", season_id="season-2026-spring",
        first_name="Zoe", last_name="Young", is_new_player=True,
    ))
    got = repo.get(db_conn, "p-new")
    assert got.is_new_player
    assert got.team_id is None


def test_snapshot_from_repositories(tmp_path):
    db_path = tmp_path / "repo_test.db"
    init_db(db_path=db_path)
    conn = get_connection(db_path)
    try:
        division = DivisionRepository().create(conn, "8U Softball")
        season = SeasonRepository().create(conn, "Fall 2026")
        team = TeamRepository().create(conn, division.id, season.id, "Comets", color="orange")
        PlayerRepository().create(conn, PlayerRecord(
            id="p1", division_id=division.id, season_id=season.id,
            first_name="Ana", last_name="Lopez", family_id="fam-lopez",
        ))
        VolunteerRepository().create(conn, VolunteerRecord(
            id="v1", division_id=division.id, season_id=season.id, name="Rosa Lopez",
            family_id="fam-lopez", interested_roles='["Team Parent"]',
        ))
        snapshot = load_roster_snapshot(conn, division.id, season.id)
    finally:
        conn.close()
    assert snapshot.teams == [team]
    assert snapshot.players[0].draft_number == 1
    assert [(v.id, v.derived_role) for v in snapshot.players[0].volunteers] == [("v1", "Team Parent")]
