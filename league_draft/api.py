"""
REST API for the league draft engine.
Thin wrappers around the draft session store, roster loader and commit coordinator.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from league_draft.config import get_settings
from league_draft.models import DraftSessionState
from league_draft.persistence import get_connection, init_db
from league_draft.persistence.db import get_db_path
from league_draft.roles import list_all_roles
from league_draft.roster_loader import load_roster_snapshot
from league_draft.services.commit import CommitCoordinator
from league_draft.services.draft_session import (
    AbortMove,
    BindTeam,
    CancelDraft,
    ConfigureManagers,
    EnterPick,
    ManagerSetup,
    ResolveAssignment,
    ResolveMove,
    RemovePlayer,
    SkipAssignment,
    StageMove,
    StartDraft,
    new_session,
    next_assignment,
    round_order,
)
from league_draft.services.draft_board import waiting_managers
from league_draft.services.errors import ConflictError, DraftError, NotFoundError
from league_draft.services.events import DraftEvent
from league_draft.services.roster_mutator import MoveDecision
from league_draft.services.session_store import DraftSessionStore

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    init_db(db_path=get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="League Draft API",
    description="Live snake draft with sibling auto-draft and volunteer role assignment",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

store = DraftSessionStore()
coordinator = CommitCoordinator()


# ---------- Request models ----------


class ManagerIn(BaseModel):
    name: str = Field(..., max_length=200)
    id: str | None = Field(None, description="Existing team id or omitted for a temporary id")
    team_id: str | None = None


class CreateDraftRequest(BaseModel):
    division_id: str
    season_id: str
    include_assigned: bool = Field(False, description="Also load players that already have a team")
    buffer_rounds: int | None = Field(None, ge=0, le=20, description="Default: LEAGUE_DRAFT_BUFFER_ROUNDS")


class ConfigureManagersRequest(BaseModel):
    managers: list[ManagerIn]


class StartDraftRequest(BaseModel):
    managers: list[ManagerIn] | None = Field(None, description="Omit to keep the configured managers")


class PickRequest(BaseModel):
    manager_id: str
    draft_number: int | None = Field(None, ge=1)
    player_id: str | None = None


class ResolveAssignmentRequest(BaseModel):
    decisions: dict[str, str | None] = Field(
        default_factory=dict,
        description="volunteer_id -> role (Manager, Assistant Coach, Team Parent) or null to decline",
    )


class StageMoveRequest(BaseModel):
    from_manager_id: str
    to_manager_id: str
    player_id: str


class ResolveMoveRequest(BaseModel):
    assignments: dict[str, str | None] = Field(default_factory=dict)
    unassign_all: bool = False


class BindTeamRequest(BaseModel):
    team_id: str | None = Field(None, description="null unbinds")


class CommitRequest(BaseModel):
    force: bool = Field(False, description="Ignore checkpoints and rewrite every manager")


# ---------- Helpers ----------


def _http_error(e: DraftError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _setups(managers: list[ManagerIn]) -> tuple[ManagerSetup, ...]:
    return tuple(ManagerSetup(name=m.name, id=m.id, team_id=m.team_id) for m in managers)


def _state_payload(session_id: str, state: DraftSessionState) -> dict[str, Any]:
    prompt = next_assignment(state)
    ids = state.manager_ids()
    return {
        "session_id": session_id,
        **state.to_dict(),
        "order": round_order(state) if ids else [],
        "waiting_manager_ids": waiting_managers(state.board, state.current_round, ids) if state.board else [],
        "next_assignment": prompt.to_dict() if prompt else None,
    }


def _dispatch(session_id: str, op: Any) -> dict[str, Any]:
    try:
        state, events = store.dispatch(session_id, op)
    except DraftError as e:
        raise _http_error(e)
    return {
        "state": _state_payload(session_id, state),
        "events": [ev.to_dict() for ev in events],
    }


# ---------- Routes ----------


@app.get("/roles")
def get_roles() -> dict[str, Any]:
    """List volunteer draft roles with descriptions."""
    return {
        "roles": [
            {"id": r.value, "name": d.name, "description": d.description, "exclusive": d.exclusive}
            for r, d in list_all_roles()
        ],
    }


@app.post("/drafts")
def create_draft(req: CreateDraftRequest) -> dict[str, Any]:
    """Load the roster snapshot and open a draft session in setup."""
    with db_conn() as conn:
        try:
            snapshot = load_roster_snapshot(conn, req.division_id, req.season_id, req.include_assigned)
        except DraftError as e:
            raise _http_error(e)
    buffer_rounds = req.buffer_rounds if req.buffer_rounds is not None else get_settings().buffer_rounds
    state = new_session(snapshot.division_id, snapshot.season_id, snapshot.players, snapshot.teams, buffer_rounds)
    session_id = store.create(state)
    return {"session_id": session_id, "state": _state_payload(session_id, state)}


@app.get("/drafts/{session_id}")
def get_draft(session_id: str) -> dict[str, Any]:
    try:
        state = store.get(session_id)
    except DraftError as e:
        raise _http_error(e)
    return _state_payload(session_id, state)


@app.get("/drafts/{session_id}/events")
def get_draft_events(session_id: str) -> dict[str, Any]:
    try:
        events: list[DraftEvent] = store.events(session_id)
    except DraftError as e:
        raise _http_error(e)
    return {"events": [ev.to_dict() for ev in events]}


@app.put("/drafts/{session_id}/managers")
def configure_managers(session_id: str, req: ConfigureManagersRequest) -> dict[str, Any]:
    return _dispatch(session_id, ConfigureManagers(_setups(req.managers)))


@app.post("/drafts/{session_id}/start")
def start_draft(session_id: str, req: StartDraftRequest | None = None) -> dict[str, Any]:
    managers = _setups(req.managers) if req is not None and req.managers is not None else None
    return _dispatch(session_id, StartDraft(managers))


@app.get("/drafts/{session_id}/order")
def get_order(session_id: str, round: int | None = Query(None, ge=1)) -> dict[str, Any]:
    """Snake order for a round (default: current round)."""
    try:
        state = store.get(session_id)
        order = round_order(state, round)
    except DraftError as e:
        raise _http_error(e)
    return {"round": round or max(state.current_round, 1), "order": order}


@app.post("/drafts/{session_id}/picks")
def enter_pick(session_id: str, req: PickRequest) -> dict[str, Any]:
    """Pick by draft number or player id (exactly one)."""
    if (req.draft_number is None) == (req.player_id is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of draft_number or player_id")
    player = req.draft_number if req.draft_number is not None else req.player_id
    return _dispatch(session_id, EnterPick(manager_id=req.manager_id, player=player))


@app.get("/drafts/{session_id}/assignments/next")
def get_next_assignment(session_id: str) -> dict[str, Any]:
    try:
        state = store.get(session_id)
    except DraftError as e:
        raise _http_error(e)
    prompt = next_assignment(state)
    return {"assignment": prompt.to_dict() if prompt else None}


@app.post("/drafts/{session_id}/assignments/resolve")
def resolve_assignment(session_id: str, req: ResolveAssignmentRequest) -> dict[str, Any]:
    return _dispatch(session_id, ResolveAssignment(decisions=dict(req.decisions)))


@app.post("/drafts/{session_id}/assignments/skip")
def skip_assignment(session_id: str) -> dict[str, Any]:
    return _dispatch(session_id, SkipAssignment())


@app.delete("/drafts/{session_id}/managers/{manager_id}/players/{player_id}")
def remove_player(session_id: str, manager_id: str, player_id: str) -> dict[str, Any]:
    return _dispatch(session_id, RemovePlayer(manager_id=manager_id, player_id=player_id))


@app.post("/drafts/{session_id}/moves")
def stage_move(session_id: str, req: StageMoveRequest) -> dict[str, Any]:
    return _dispatch(session_id, StageMove(req.from_manager_id, req.to_manager_id, req.player_id))


@app.post("/drafts/{session_id}/moves/resolve")
def resolve_move(session_id: str, req: ResolveMoveRequest) -> dict[str, Any]:
    decision = MoveDecision(assignments=dict(req.assignments), unassign_all=req.unassign_all)
    return _dispatch(session_id, ResolveMove(decision))


@app.delete("/drafts/{session_id}/moves")
def abort_move(session_id: str) -> dict[str, Any]:
    return _dispatch(session_id, AbortMove())


@app.post("/drafts/{session_id}/cancel")
def cancel_draft(session_id: str) -> dict[str, Any]:
    return _dispatch(session_id, CancelDraft())


@app.put("/drafts/{session_id}/managers/{manager_id}/team")
def bind_team(session_id: str, manager_id: str, req: BindTeamRequest) -> dict[str, Any]:
    return _dispatch(session_id, BindTeam(manager_id=manager_id, team_id=req.team_id))


@app.post("/drafts/{session_id}/commit")
def commit_draft(session_id: str, req: CommitRequest | None = None) -> dict[str, Any]:
    """
    Write rosters and volunteer roles to the DB. A write failure returns 502 with the
    report; calling again resumes at the manager that failed.
    """
    force = req.force if req is not None else False
    try:
        lock = store.lock_for(session_id)
        with lock:
            state = store.get(session_id)
            with db_conn() as conn:
                report = coordinator.commit(conn, session_id, state, force=force)
    except DraftError as e:
        raise _http_error(e)
    if not report.ok:
        raise HTTPException(status_code=502, detail=report.to_dict())
    return report.to_dict()


@app.delete("/drafts/{session_id}")
def delete_draft(session_id: str) -> dict[str, Any]:
    """Discard a session (nothing is written to the DB)."""
    try:
        store.delete(session_id)
    except DraftError as e:
        raise _http_error(e)
    return {"deleted": session_id}


# ---------- Run with: uvicorn league_draft.api:app --reload ----------
