"""
Roster snapshot loader: the undrafted players of one division/season, with their
families' draft-eligible volunteers embedded, plus the division's teams.

Draft numbers are 1..N in last-name, first-name order. A volunteer appears once per
draft role they are eligible for (from interested_roles, plus a declared role that
maps to a slot); volunteers with no draft role are left out.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from league_draft.models import Player, TeamRecord, VolunteerRecord, VolunteerSummary
from league_draft.persistence.repositories import (
    DivisionRepository,
    PlayerRepository,
    SeasonRepository,
    TeamRepository,
    VolunteerRepository,
)
from league_draft.roles import VolunteerRole, derive_draft_roles, parse_role
from league_draft.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class RosterSnapshot:
    division_id: str
    season_id: str
    players: list[Player] = field(default_factory=list)
    teams: list[TeamRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "division_id": self.division_id,
            "season_id": self.season_id,
            "players": [p.to_dict() for p in self.players],
            "teams": [t.to_dict() for t in self.teams],
        }


def volunteer_draft_roles(record: VolunteerRecord) -> list[VolunteerRole]:
    """Draft roles for one volunteer, in vocabulary order."""
    roles = set(derive_draft_roles(record.interested_roles))
    declared = parse_role(record.role)
    if declared is not None:
        roles.add(declared)
    return [r for r in VolunteerRole if r in roles]


def expand_volunteer(record: VolunteerRecord) -> list[VolunteerSummary]:
    """One summary per eligible draft role (derived_role set)."""
    return [
        VolunteerSummary(
            id=record.id,
            name=record.name,
            family_id=record.family_id,
            role=record.role,
            derived_role=role.value,
            email=record.email,
            phone=record.phone,
        )
        for role in volunteer_draft_roles(record)
    ]


def load_roster_snapshot(
    conn: sqlite3.Connection,
    division_id: str,
    season_id: str,
    include_assigned: bool = False,
) -> RosterSnapshot:
    """
    Read players, volunteers and teams for a division/season.
    include_assigned: also load players that already have a team (re-draft).
    """
    if DivisionRepository().get(conn, division_id) is None:
        raise NotFoundError(f"Division not found: {division_id}")
    if SeasonRepository().get(conn, season_id) is None:
        raise NotFoundError(f"Season not found: {season_id}")

    records = PlayerRepository().list_by_division(
        conn, division_id, season_id, undrafted_only=not include_assigned
    )
    family_ids = {r.family_id for r in records if r.family_id}
    by_family: dict[str, list[VolunteerSummary]] = {}
    for v in VolunteerRepository().list_by_families(conn, division_id, season_id, family_ids):
        by_family.setdefault(v.family_id or "", []).extend(expand_volunteer(v))

    players = [
        Player(
            id=r.id,
            first_name=r.first_name,
            last_name=r.last_name,
            draft_number=i,
            family_id=r.family_id,
            birth_date=r.birth_date,
            gender=r.gender,
            is_travel_player=r.is_travel_player,
            is_new_player=r.is_new_player,
            volunteers=tuple(by_family.get(r.family_id, [])) if r.family_id else (),
        )
        for i, r in enumerate(records, start=1)
    ]
    teams = TeamRepository().list_by_division(conn, division_id, season_id)
    logger.info(
        "Loaded roster division=%s season=%s players=%d teams=%d",
        division_id, season_id, len(players), len(teams),
    )
    return RosterSnapshot(division_id=division_id, season_id=season_id, players=players, teams=teams)


# ---------- JSON seed import ----------


def _bool(value: Any) -> int:
    if isinstance(value, str):
        return int(value.strip().lower() in ("1", "true", "yes", "y"))
    return int(bool(value))


def _interested(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value))
    return str(value)


def import_roster_json(conn: sqlite3.Connection, seed_path: Path) -> None:
    """
    Load a roster JSON file: {"division": {...}, "season": {...}, "teams": [...],
    "players": [...], "volunteers": [...]}. Rows are upserted by id.
    """
    data = json.loads(Path(seed_path).read_text())
    division = data.get("division")
    season = data.get("season")
    if not division or not season:
        raise ValidationError(f"{seed_path}: 'division' and 'season' are required")
    division_id, season_id = division["id"], season["id"]
    cur = conn.cursor()
    cur.execute(
        "INSERT OR REPLACE INTO divisions (id, name, created_at) VALUES (?, ?, datetime('now'))",
        (division_id, division.get("name", division_id)),
    )
    cur.execute(
        "INSERT OR REPLACE INTO seasons (id, name, created_at) VALUES (?, ?, datetime('now'))",
        (season_id, season.get("name", season_id)),
    )
    for t in data.get("teams", []):
        cur.execute(
            """INSERT OR REPLACE INTO teams (
                id, division_id, season_id, name, color, manager_name, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, datetime('now'))""",
            (t["id"], division_id, season_id, t["name"], t.get("color"), t.get("manager_name")),
        )
    for p in data.get("players", []):
        cur.execute(
            """INSERT OR REPLACE INTO players (
                id, division_id, season_id, first_name, last_name, family_id,
                birth_date, gender, is_travel_player, is_new_player, team_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                p["id"], division_id, season_id, p["first_name"], p["last_name"], p.get("family_id"),
                p.get("birth_date"), p.get("gender"), _bool(p.get("is_travel_player", False)),
                _bool(p.get("is_new_player", False)), p.get("team_id"),
            ),
        )
    for v in data.get("volunteers", []):
        cur.execute(
            """INSERT OR REPLACE INTO volunteers (
                id, division_id, season_id, name, family_id, email, phone,
                role, interested_roles, team_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                v["id"], division_id, season_id, v["name"], v.get("family_id"), v.get("email"),
                v.get("phone"), v.get("role"), _interested(v.get("interested_roles")), v.get("team_id"),
            ),
        )
    conn.commit()
    logger.info(
        "Imported roster %s: %d team(s), %d player(s), %d volunteer(s)",
        seed_path, len(data.get("teams", [])), len(data.get("players", [])), len(data.get("volunteers", [])),
    )
