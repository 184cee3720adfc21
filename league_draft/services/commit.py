"""
Commit coordinator: write a completed draft back to the roster store.

Managers are written in setup order, one repository call per entity:
players -> team, slot volunteers -> (team, role), then the team's manager name.
There is no enclosing transaction. After each manager's writes succeed a checkpoint
(session, manager, team, fingerprint) is stored; a retry skips managers whose
checkpoint still matches, so a failed commit resumes at the manager that failed.
"""
from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any

from league_draft.models import DraftSessionState, DraftStatus, Manager
from league_draft.persistence.repositories import (
    CommitCheckpointRepository,
    PlayerRepository,
    TeamRepository,
    VolunteerRepository,
)
from league_draft.services.errors import ConflictError, DraftError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class CommitReport:
    """Outcome of one commit attempt. failed_manager_id set -> stopped there; retry resumes."""
    session_id: str
    committed_manager_ids: list[str] = field(default_factory=list)
    skipped_manager_ids: list[str] = field(default_factory=list)
    failed_manager_id: str | None = None
    error: str | None = None
    players_written: int = 0
    volunteers_written: int = 0

    @property
    def ok(self) -> bool:
        return self.failed_manager_id is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "ok": self.ok,
            "committed_manager_ids": list(self.committed_manager_ids),
            "skipped_manager_ids": list(self.skipped_manager_ids),
            "failed_manager_id": self.failed_manager_id,
            "error": self.error,
            "players_written": self.players_written,
            "volunteers_written": self.volunteers_written,
        }


def fingerprint(manager: Manager) -> str:
    """Stable hash of what commit writes for manager (team binding excluded)."""
    payload = {
        "name": manager.name,
        "players": [p.player.id for p in manager.picks],
        "slots": [[h.volunteer.id, h.role.value] for h in manager.slots.holdings()],
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


def check_ready(state: DraftSessionState) -> None:
    """Raise unless state can be committed."""
    if state.status != DraftStatus.COMPLETE:
        raise ConflictError(f"Draft must be complete before committing (status: {state.status.value})")
    if state.pending_move is not None:
        raise ConflictError("A player move is awaiting volunteer reassignment; resolve or abort it first")
    unbound = [m.name for m in state.managers if not m.team_id]
    if unbound:
        raise ValidationError(
            f"Please assign teams to the following managers before committing: {', '.join(unbound)}"
        )


class CommitCoordinator:
    """
    Writes managers' rosters through the repositories.
    Stateless; progress lives in the checkpoint table.
    """

    def __init__(self) -> None:
        self._player_repo = PlayerRepository()
        self._volunteer_repo = VolunteerRepository()
        self._team_repo = TeamRepository()
        self._checkpoint_repo = CommitCheckpointRepository()

    def commit(
        self,
        conn: sqlite3.Connection,
        session_id: str,
        state: DraftSessionState,
        force: bool = False,
    ) -> CommitReport:
        """
        Commit state. Precondition failures raise; write failures are reported
        (failed_manager_id, error) and stop the run.
        force=True ignores checkpoints and rewrites every manager.
        """
        check_ready(state)
        report = CommitReport(session_id=session_id)
        done = {} if force else self._checkpoint_repo.load(conn, session_id)
        logger.info("Commit start session=%s managers=%d force=%s", session_id, len(state.managers), force)

        for manager in state.managers:
            fp = fingerprint(manager)
            if done.get(manager.id) == (manager.team_id, fp):
                report.skipped_manager_ids.append(manager.id)
                continue
            try:
                players, volunteers = self._write_manager(conn, manager)
                self._checkpoint_repo.save(conn, session_id, manager.id, manager.team_id, fp)
            except (sqlite3.Error, DraftError) as e:
                logger.warning(
                    "Commit failed session=%s manager=%s: %s", session_id, manager.id, e, exc_info=True
                )
                report.failed_manager_id = manager.id
                report.error = f"Failed to commit roster for {manager.name}: {e}"
                return report
            report.committed_manager_ids.append(manager.id)
            report.players_written += players
            report.volunteers_written += volunteers

        logger.info(
            "Commit done session=%s committed=%d skipped=%d",
            session_id, len(report.committed_manager_ids), len(report.skipped_manager_ids),
        )
        return report

    def _write_manager(self, conn: sqlite3.Connection, manager: Manager) -> tuple[int, int]:
        team_id = manager.team_id
        for pick in manager.picks:
            self._player_repo.assign_team(conn, pick.player.id, team_id)
        holdings = manager.slots.holdings()
        for holding in holdings:
            self._volunteer_repo.assign_team_role(conn, holding.volunteer.id, team_id, holding.role.value)
        volunteer_manager = manager.slots.manager
        self._team_repo.update_manager(
            conn, team_id, manager.name, volunteer_manager.id if volunteer_manager else None
        )
        return len(manager.picks), len(holdings)
