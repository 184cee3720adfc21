"""
Draft engine errors. All are ValueErrors so callers that only care about
"bad request" can catch one type; the API maps each kind to its own status.
"""
from __future__ import annotations


class DraftError(ValueError):
    """Base for every error raised by a draft operation. State is left unchanged."""


class ValidationError(DraftError):
    """Malformed or incomplete input (blank manager name, unbound team at commit, bad role)."""


class NotFoundError(DraftError):
    """Referenced player, manager, team, volunteer or session does not exist in current state."""


class ConflictError(DraftError):
    """Operation violates turn order, status, or a uniqueness rule (e.g. already picked this round)."""
