"""
Events returned alongside each new session state.
They describe side effects for the caller (notifications, what to prompt next);
the engine never depends on them being consumed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    MANAGERS_CONFIGURED = "managers_configured"
    DRAFT_STARTED = "draft_started"
    PLAYER_DRAFTED = "player_drafted"
    SIBLINGS_AUTO_DRAFTED = "siblings_auto_drafted"
    ASSIGNMENT_QUEUED = "assignment_queued"
    ASSIGNMENT_DROPPED = "assignment_dropped"
    VOLUNTEER_ASSIGNED = "volunteer_assigned"
    VOLUNTEER_UNASSIGNED = "volunteer_unassigned"
    ASSIGNMENT_RESOLVED = "assignment_resolved"
    ROUND_ADVANCED = "round_advanced"
    DRAFT_COMPLETED = "draft_completed"
    PLAYER_REMOVED = "player_removed"
    SIBLINGS_REMAINING = "siblings_remaining"
    MOVE_STAGED = "move_staged"
    PLAYER_MOVED = "player_moved"
    MOVE_ABORTED = "move_aborted"
    DRAFT_CANCELLED = "draft_cancelled"
    TEAM_BOUND = "team_bound"


@dataclass(frozen=True)
class DraftEvent:
    kind: EventKind
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "data": dict(self.data)}
