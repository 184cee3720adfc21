#!/usr/bin/env python3
"""
Mock draft: Seed roster → Draft in snake order → Assign volunteers → Commit → Read back.
Run from project root: python3 scripts/mock_draft.py
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from league_draft.models import DraftStatus
from league_draft.persistence import PlayerRepository, TeamRepository, get_connection, init_db
from league_draft.persistence.db import set_db_path
from league_draft.roster_loader import load_roster_snapshot
from league_draft.services.commit import CommitCoordinator
from league_draft.services.draft_board import waiting_managers
from league_draft.services.draft_session import (
    EnterPick,
    ResolveAssignment,
    StartDraft,
    new_session,
    next_assignment,
    round_order,
)
from league_draft.services.session_store import DraftSessionStore


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    # Use data/mock_draft.db for demo (distinct from league.db)
    db_path = PROJECT_ROOT / "data" / "mock_draft.db"
    if db_path.exists():
        db_path.unlink()
    set_db_path(db_path)
    init_db(db_path=db_path, seed_path=PROJECT_ROOT / "data" / "sample_roster.json")

    conn = get_connection()
    try:
        # 1. Snapshot + session (one manager per existing team, already bound)
        snapshot = load_roster_snapshot(conn, "div-10u", "season-2026-spring")
        store = DraftSessionStore()
        session_id = store.create(new_session(snapshot.division_id, snapshot.season_id, snapshot.players, snapshot.teams))
        state, _ = store.dispatch(session_id, StartDraft())
        print(f"Session {session_id}: {len(state.players)} players, {len(state.managers)} managers")

        # 2. Each manager takes the lowest draft number left; accept every volunteer offer
        while state.status == DraftStatus.IN_PROGRESS:
            ids = state.manager_ids()
            waiting = set(waiting_managers(state.board, state.current_round, ids))
            manager_id = next(mid for mid in round_order(state) if mid in waiting)
            state, events = store.dispatch(session_id, EnterPick(manager_id, state.pool[0].draft_number))
            for ev in events:
                print(f"  [{ev.kind.value}] {ev.message}")
            while True:
                prompt = next_assignment(state)
                if prompt is None:
                    break
                decisions = {o.volunteer.id: o.allowed_roles[0] for o in prompt.offers}
                state, events = store.dispatch(session_id, ResolveAssignment(decisions))
                for ev in events:
                    print(f"  [{ev.kind.value}] {ev.message}")

        # 3. Commit and read back
        report = CommitCoordinator().commit(conn, session_id, state)
        print(f"Commit ok={report.ok} players={report.players_written} volunteers={report.volunteers_written}")

        team_repo = TeamRepository()
        player_repo = PlayerRepository()
        for manager in state.managers:
            team = team_repo.get(conn, manager.team_id)
            roster = player_repo.list_by_team(conn, manager.team_id)
            print(f"{team.name} (manager: {team.manager_name})")
            for p in roster:
                print(f"  - {p.first_name} {p.last_name}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
