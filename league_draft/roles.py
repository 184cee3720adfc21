"""
Volunteer draft roles: the fixed vocabulary a parent-volunteer can be bound to on a team.
Each manager holds at most one Manager and one Team Parent; Assistant Coach is a set.
Role parsing from free-text interest fields lives here so the loader and the queue agree.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any


# ---------- Role enum (exactly these 3) ----------


class VolunteerRole(str, Enum):
    MANAGER = "Manager"
    ASSISTANT_COACH = "Assistant Coach"
    TEAM_PARENT = "Team Parent"


# ---------- Role definitions (shown to operators) ----------


@dataclass(frozen=True)
class RoleDefinition:
    name: str
    description: str
    exclusive: bool  # True: one holder per team, last write wins


ROLE_DEFINITIONS: dict[VolunteerRole, RoleDefinition] = {
    VolunteerRole.MANAGER: RoleDefinition(
        name="Manager",
        description="Runs the team. Binding a Manager volunteer renames the drafting manager.",
        exclusive=True,
    ),
    VolunteerRole.ASSISTANT_COACH: RoleDefinition(
        name="Assistant Coach",
        description="Helps at practices and games. Any number per team.",
        exclusive=False,
    ),
    VolunteerRole.TEAM_PARENT: RoleDefinition(
        name="Team Parent",
        description="Team communications and snacks. One per team.",
        exclusive=True,
    ),
}


def list_all_roles() -> list[tuple[VolunteerRole, RoleDefinition]]:
    """For API/frontend: list all roles with definitions."""
    return [(r, ROLE_DEFINITIONS[r]) for r in VolunteerRole]


# ---------- Parsing ----------
# Declared roles come from registration forms, so spelling varies.

_ROLE_ALIASES: dict[str, VolunteerRole] = {
    "manager": VolunteerRole.MANAGER,
    "team manager": VolunteerRole.MANAGER,
    "coach": VolunteerRole.ASSISTANT_COACH,
    "assistant coach": VolunteerRole.ASSISTANT_COACH,
    "team parent": VolunteerRole.TEAM_PARENT,
}

_INTEREST_SPLIT = re.compile(r"\r?\n|\s*;\s*|\s*,\s*|\s*\|\s*")


def parse_role(value: str | VolunteerRole | None) -> VolunteerRole | None:
    """Parse a declared role string to enum; None if not a draftable role."""
    if value is None:
        return None
    if isinstance(value, VolunteerRole):
        return value
    return _ROLE_ALIASES.get(" ".join(value.strip().lower().split()))


def allowed_target_roles(declared: str | VolunteerRole | None) -> list[VolunteerRole]:
    """
    Slots a volunteer may be offered, restricted by their own role.
    Manager -> Manager; Coach/Assistant Coach -> Assistant Coach; Team Parent -> Team Parent.
    """
    role = parse_role(declared)
    return [role] if role is not None else []


def parse_interested_roles(raw: Any) -> list[str]:
    """
    Split a free-text interested_roles field into trimmed entries.
    Accepts a list, a JSON array string, or a delimited string (newline , ; |).
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(r).strip() for r in raw if str(r).strip()]
    s = str(raw).strip()
    if not s:
        return []
    if s.startswith("["):
        try:
            parsed = json.loads(s)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(r).strip() for r in parsed if str(r).strip()]
    return [part.strip() for part in _INTEREST_SPLIT.split(s) if part.strip()]


def derive_draft_roles(interested_roles: Any) -> list[VolunteerRole]:
    """
    Draft roles a volunteer is eligible for, in vocabulary order, deduplicated.
    Entries that are not draft roles (e.g. "Snack Bar") are ignored.
    """
    found = {parse_role(entry) for entry in parse_interested_roles(interested_roles)}
    return [r for r in VolunteerRole if r in found]
