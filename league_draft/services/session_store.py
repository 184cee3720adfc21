"""
In-memory registry of draft sessions.

Each session is driven by one operator, but FastAPI runs sync handlers in a thread
pool, so operations on a session are serialized with a per-session lock. The stored
state is only replaced when the reducer returns; a raised error leaves it as it was.
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field

from league_draft.models import DraftSessionState
from league_draft.services.draft_session import Operation, apply
from league_draft.services.errors import NotFoundError
from league_draft.services.events import DraftEvent

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    state: DraftSessionState
    lock: threading.Lock = field(default_factory=threading.Lock)
    events: list[DraftEvent] = field(default_factory=list)


class DraftSessionStore:
    """Session id -> current state (+ event history)."""

    def __init__(self) -> None:
        self._sessions: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def create(self, state: DraftSessionState) -> str:
        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = _Entry(state=state)
        logger.info(
            "Session created id=%s division=%s season=%s players=%d",
            session_id, state.division_id, state.season_id, len(state.players),
        )
        return session_id

    def _entry(self, session_id: str) -> _Entry:
        with self._lock:
            entry = self._sessions.get(session_id)
        if entry is None:
            raise NotFoundError(f"Draft session not found: {session_id}")
        return entry

    def get(self, session_id: str) -> DraftSessionState:
        return self._entry(session_id).state

    def events(self, session_id: str) -> list[DraftEvent]:
        return list(self._entry(session_id).events)

    def dispatch(self, session_id: str, op: Operation) -> tuple[DraftSessionState, list[DraftEvent]]:
        """Apply op to the session; the stored state changes only on success."""
        entry = self._entry(session_id)
        with entry.lock:
            new_state, events = apply(entry.state, op)
            entry.state = new_state
            entry.events.extend(events)
        return new_state, events

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise NotFoundError(f"Draft session not found: {session_id}")

    def lock_for(self, session_id: str) -> threading.Lock:
        """Per-session lock, for callers (commit) that read state across several steps."""
        return self._entry(session_id).lock
