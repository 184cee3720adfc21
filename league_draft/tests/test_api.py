"""
API integration tests.
Uses TestClient to avoid starting a server.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
    HAS_HTTPX = True
except (ImportError, RuntimeError):
    HAS_HTTPX = False

pytestmark = pytest.mark.skipif(not HAS_HTTPX, reason="httpx required for TestClient")

from league_draft.api import app
from league_draft.persistence.db import init_db, set_db_path
from league_draft.persistence.repositories import PlayerRepository

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Use a temporary DB for each test."""
    db_path = tmp_path / "test.db"
    set_db_path(db_path)
    init_db(db_path=db_path, seed_path=PROJECT_ROOT / "data" / "sample_roster.json")
    yield db_path


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session_id(client):
    resp = client.post("/drafts", json={"division_id": "div-10u", "season_id": "season-2026-spring"})
    assert resp.status_code == 200
    return resp.json()["session_id"]


def _kinds(resp) -> list[str]:
    return [e["kind"] for e in resp.json()["events"]]


def _draft_to_completion(client, session_id: str) -> dict:
    state = client.get(f"/drafts/{session_id}").json()
    while state["status"] == "in_progress":
        waiting = set(state["waiting_manager_ids"])
        manager_id = next(mid for mid in state["order"] if mid in waiting)
        resp = client.post(
            f"/drafts/{session_id}/picks",
            json={"manager_id": manager_id, "draft_number": state["pool"][0]["draft_number"]},
        )
        assert resp.status_code == 200, resp.text
        state = resp.json()["state"]
        while state["next_assignment"] is not None:
            offers = state["next_assignment"]["offers"]
            decisions = {o["volunteer"]["id"]: o["allowed_roles"][0] for o in offers}
            resp = client.post(f"/drafts/{session_id}/assignments/resolve", json={"decisions": decisions})
            assert resp.status_code == 200, resp.text
            state = resp.json()["state"]
    return state


def test_get_roles(client):
    resp = client.get("/roles")
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()["roles"]] == ["Manager", "Assistant Coach", "Team Parent"]


def test_create_draft(client):
    resp = client.post("/drafts", json={"division_id": "div-10u", "season_id": "season-2026-spring"})
    assert resp.status_code == 200
    state = resp.json()["state"]
    assert state["status"] == "setup"
    assert state["total_players"] == 12
    assert [m["id"] for m in state["managers"]] == ["team-blue", "team-green", "team-red"]


def test_create_draft_unknown_division(client):
    resp = client.post("/drafts", json={"division_id": "nope", "season_id": "season-2026-spring"})
    assert resp.status_code == 404


def test_unknown_session(client):
    assert client.get("/drafts/does-not-exist").status_code == 404
    assert client.post("/drafts/does-not-exist/start").status_code == 404


def test_configure_and_start(client, session_id):
    resp = client.put(
        f"/drafts/{session_id}/managers",
        json={"managers": [{"name": "Alice"}, {"name": "Bob", "team_id": "team-red"}]},
    )
    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()["state"]["managers"]] == ["temp-1", "temp-2"]
    resp = client.post(f"/drafts/{session_id}/start")
    assert resp.status_code == 200
    assert resp.json()["state"]["status"] == "in_progress"
    assert client.post(f"/drafts/{session_id}/start").status_code == 409


def test_start_with_blank_manager_name(client, session_id):
    resp = client.post(f"/drafts/{session_id}/start", json={"managers": [{"name": " "}]})
    assert resp.status_code == 400


def test_order_endpoint(client, session_id):
    client.post(f"/drafts/{session_id}/start")
    resp = client.get(f"/drafts/{session_id}/order", params={"round": 2})
    assert resp.status_code == 200
    assert resp.json() == {"round": 2, "order": ["team-red", "team-green", "team-blue"]}


def test_pick_with_siblings_and_assignment(client, session_id):
    client.post(f"/drafts/{session_id}/start")
    resp = client.post(f"/drafts/{session_id}/picks", json={"manager_id": "team-blue", "draft_number": 1})
    assert resp.status_code == 200
    assert "siblings_auto_drafted" in _kinds(resp)
    blue = resp.json()["state"]["managers"][0]
    assert [p["player_id"] for p in blue["picks"]] == ["p-adams-liam", "p-adams-noah"]

    resp = client.get(f"/drafts/{session_id}/assignments/next")
    assignment = resp.json()["assignment"]
    assert assignment["player_id"] == "p-adams-liam"
    assert assignment["offers"][0]["allowed_roles"] == ["Manager", "Team Parent"]

    resp = client.post(
        f"/drafts/{session_id}/assignments/resolve", json={"decisions": {"v-adams-sarah": "Assistant Coach"}}
    )
    assert resp.status_code == 400
    resp = client.post(
        f"/drafts/{session_id}/assignments/resolve", json={"decisions": {"v-adams-sarah": "Team Parent"}}
    )
    assert resp.status_code == 200
    assert resp.json()["state"]["managers"][0]["volunteers"]["team_parent"]["id"] == "v-adams-sarah"
    resp = client.post(f"/drafts/{session_id}/assignments/skip")
    assert resp.status_code == 200
    assert client.get(f"/drafts/{session_id}/assignments/next").json() == {"assignment": None}


def test_pick_errors(client, session_id):
    client.post(f"/drafts/{session_id}/start")
    client.post(f"/drafts/{session_id}/picks", json={"manager_id": "team-green", "draft_number": 3})
    resp = client.post(f"/drafts/{session_id}/picks", json={"manager_id": "team-green", "draft_number": 4})
    assert resp.status_code == 409
    resp = client.post(f"/drafts/{session_id}/picks", json={"manager_id": "team-red", "draft_number": 3})
    assert resp.status_code == 404
    resp = client.post(
        f"/drafts/{session_id}/picks", json={"manager_id": "team-red", "draft_number": 4, "player_id": "x"}
    )
    assert resp.status_code == 400


def test_remove_and_move(client, session_id):
    client.post(f"/drafts/{session_id}/start")
    client.post(f"/drafts/{session_id}/picks", json={"manager_id": "team-green", "player_id": "p-evans-lucas"})
    resp = client.post(
        f"/drafts/{session_id}/moves",
        json={"from_manager_id": "team-green", "to_manager_id": "team-red", "player_id": "p-evans-lucas"},
    )
    assert resp.status_code == 200
    assert "player_moved" in _kinds(resp)
    resp = client.delete(f"/drafts/{session_id}/managers/team-red/players/p-evans-lucas")
    assert resp.status_code == 200
    assert "player_removed" in _kinds(resp)
    resp = client.delete(f"/drafts/{session_id}/managers/team-red/players/p-evans-lucas")
    assert resp.status_code == 404


def test_staged_move_resolve_and_abort(client, session_id):
    client.post(f"/drafts/{session_id}/start")
    client.post(f"/drafts/{session_id}/picks", json={"manager_id": "team-green", "player_id": "p-fox-ava"})
    client.post(f"/drafts/{session_id}/assignments/resolve", json={"decisions": {"v-fox-dana": "Team Parent"}})
    body = {"from_manager_id": "team-green", "to_manager_id": "team-blue", "player_id": "p-fox-ava"}
    resp = client.post(f"/drafts/{session_id}/moves", json=body)
    assert resp.status_code == 200
    assert resp.json()["state"]["pending_move"]["player_id"] == "p-fox-ava"
    resp = client.delete(f"/drafts/{session_id}/moves")
    assert resp.status_code == 200
    assert resp.json()["state"]["pending_move"] is None

    client.post(f"/drafts/{session_id}/moves", json=body)
    resp = client.post(f"/drafts/{session_id}/moves/resolve", json={"assignments": {"v-fox-dana": "Team Parent"}})
    assert resp.status_code == 200
    managers = {m["id"]: m for m in resp.json()["state"]["managers"]}
    assert managers["team-blue"]["volunteers"]["team_parent"]["id"] == "v-fox-dana"
    assert managers["team-green"]["volunteers"]["team_parent"] is None


def test_cancel(client, session_id):
    client.post(f"/drafts/{session_id}/start")
    client.post(f"/drafts/{session_id}/picks", json={"manager_id": "team-blue", "draft_number": 1})
    resp = client.post(f"/drafts/{session_id}/cancel")
    assert resp.status_code == 200
    state = resp.json()["state"]
    assert state["status"] == "setup"
    assert len(state["pool"]) == 12


def test_full_draft_and_commit(client, session_id):
    client.post(f"/drafts/{session_id}/start")
    assert client.post(f"/drafts/{session_id}/commit").status_code == 409
    state = _draft_to_completion(client, session_id)
    assert state["status"] == "complete"
    assert state["drafted_count"] == 12

    resp = client.put(f"/drafts/{session_id}/managers/team-red/team", json={"team_id": None})
    assert resp.status_code == 200
    assert client.post(f"/drafts/{session_id}/commit").status_code == 400
    client.put(f"/drafts/{session_id}/managers/team-red/team", json={"team_id": "team-red"})

    resp = client.post(f"/drafts/{session_id}/commit")
    assert resp.status_code == 200
    report = resp.json()
    assert report["ok"] is True
    assert report["players_written"] == 12
    resp = client.post(f"/drafts/{session_id}/commit")
    assert resp.json()["skipped_manager_ids"] == ["team-blue", "team-green", "team-red"]


def test_commit_failure_returns_502(client, session_id, monkeypatch):
    client.post(f"/drafts/{session_id}/start")
    _draft_to_completion(client, session_id)

    def failing(self, conn, player_id, team_id):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(PlayerRepository, "assign_team", failing)
    resp = client.post(f"/drafts/{session_id}/commit")
    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert detail["failed_manager_id"] == "team-blue"
    assert "database is locked" in detail["error"]


def test_delete_draft(client, session_id):
    assert client.delete(f"/drafts/{session_id}").status_code == 200
    assert client.get(f"/drafts/{session_id}").status_code == 404
    assert client.delete(f"/drafts/{session_id}").status_code == 404
