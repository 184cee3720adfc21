"""
Service layer: draft state machine, pick/queue/move rules, session registry.
Pure in-memory logic; commit (services.commit) is the only part that writes to the DB.
"""
from .errors import ConflictError, DraftError, NotFoundError, ValidationError
from .draft_session import apply, new_session
from .session_store import DraftSessionStore

__all__ = [
    "ConflictError",
    "DraftError",
    "NotFoundError",
    "ValidationError",
    "apply",
    "new_session",
    "DraftSessionStore",
]
