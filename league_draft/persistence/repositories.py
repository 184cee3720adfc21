"""
Repository interfaces for league roster data.
No business logic; only read/write operations.
"""
from __future__ import annotations

import sqlite3
import uuid
from datetime import date, datetime
from typing import Any, Iterable

from league_draft.models import Division, PlayerRecord, Season, TeamRecord, VolunteerRecord
from league_draft.services.errors import NotFoundError


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _parse_date(s: str | None) -> date | None:
    if not s:
        return None
    return date.fromisoformat(s[:10])


def _now() -> str:
    return datetime.utcnow().isoformat()


# ---------- DivisionRepository / SeasonRepository ----------


class DivisionRepository:
    """CRUD for divisions."""

    def create(self, conn: sqlite3.Connection, name: str, id: str | None = None) -> Division:
        did = id or str(uuid.uuid4())
        now = _now()
        conn.execute("INSERT INTO divisions (id, name, created_at) VALUES (?, ?, ?)", (did, name, now))
        conn.commit()
        return Division(id=did, name=name, created_at=datetime.fromisoformat(now))

    def get(self, conn: sqlite3.Connection, division_id: str) -> Division | None:
        row = conn.execute("SELECT id, name, created_at FROM divisions WHERE id = ?", (division_id,)).fetchone()
        if row is None:
            return None
        return Division(id=row["id"], name=row["name"], created_at=_parse_datetime(row["created_at"]))


class SeasonRepository:
    """CRUD for seasons."""

    def create(self, conn: sqlite3.Connection, name: str, id: str | None = None) -> Season:
        sid = id or str(uuid.uuid4())
        now = _now()
        conn.execute("INSERT INTO seasons (id, name, created_at) VALUES (?, ?, ?)", (sid, name, now))
        conn.commit()
        return Season(id=sid, name=name, created_at=datetime.fromisoformat(now))

    def get(self, conn: sqlite3.Connection, season_id: str) -> Season | None:
        row = conn.execute("SELECT id, name, created_at FROM seasons WHERE id = ?", (season_id,)).fetchone()
        if row is None:
            return None
        return Season(id=row["id"], name=row["name"], created_at=_parse_datetime(row["created_at"]))


# ---------- TeamRepository ----------


def _row_to_team(row: sqlite3.Row) -> TeamRecord:
    return TeamRecord(id=row["id"], name=row["name"], manager_name=row["manager_name"], color=row["color"])


class TeamRepository:
    """Teams in a division/season. Commit writes the manager name."""

    def create(
        self,
        conn: sqlite3.Connection,
        division_id: str,
        season_id: str,
        name: str,
        color: str | None = None,
        manager_name: str | None = None,
        id: str | None = None,
    ) -> TeamRecord:
        tid = id or str(uuid.uuid4())
        conn.execute(
            "INSERT INTO teams (id, division_id, season_id, name, color, manager_name, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (tid, division_id, season_id, name, color, manager_name, _now()),
        )
        conn.commit()
        return TeamRecord(id=tid, name=name, manager_name=manager_name, color=color)

    def get(self, conn: sqlite3.Connection, team_id: str) -> TeamRecord | None:
        row = conn.execute(
            "SELECT id, name, manager_name, color FROM teams WHERE id = ?", (team_id,)
        ).fetchone()
        return _row_to_team(row) if row else None

    def get_volunteer_manager_id(self, conn: sqlite3.Connection, team_id: str) -> str | None:
        row = conn.execute("SELECT volunteer_manager_id FROM teams WHERE id = ?", (team_id,)).fetchone()
        return row["volunteer_manager_id"] if row else None

    def list_by_division(self, conn: sqlite3.Connection, division_id: str, season_id: str) -> list[TeamRecord]:
        rows = conn.execute(
            "SELECT id, name, manager_name, color FROM teams "
            "WHERE division_id = ? AND season_id = ? ORDER BY name, id",
            (division_id, season_id),
        ).fetchall()
        return [_row_to_team(r) for r in rows]

    def update_manager(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        manager_name: str,
        volunteer_manager_id: str | None,
    ) -> None:
        cur = conn.execute(
            "UPDATE teams SET manager_name = ?, volunteer_manager_id = ? WHERE id = ?",
            (manager_name, volunteer_manager_id, team_id),
        )
        if cur.rowcount == 0:
            raise NotFoundError(f"Team not found: {team_id}")
        conn.commit()


# ---------- PlayerRepository ----------


_PLAYER_COLS = (
    "id, division_id, season_id, first_name, last_name, family_id, birth_date, gender, "
    "is_travel_player, is_new_player, team_id"
)


def _row_to_player(row: sqlite3.Row) -> PlayerRecord:
    return PlayerRecord(
        id=row["id"],
        division_id=row["division_id"],
        season_id=row["season_id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        family_id=row["family_id"],
        birth_date=_parse_date(row["birth_date"]),
        gender=row["gender"],
        is_travel_player=bool(row["is_travel_player"]),
        is_new_player=bool(row["is_new_player"]),
        team_id=row["team_id"],
    )


class PlayerRepository:
    """Registered players. Only team_id is written after creation."""

    def create(self, conn: sqlite3.Connection, record: PlayerRecord) -> PlayerRecord:
        conn.execute(
            f"INSERT INTO players ({_PLAYER_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.division_id,
                record.season_id,
                record.first_name,
                record.last_name,
                record.family_id,
                record.birth_date.isoformat() if record.birth_date else None,
                record.gender,
                int(record.is_travel_player),
                int(record.is_new_player),
                record.team_id,
            ),
        )
        conn.commit()
        return record

    def get(self, conn: sqlite3.Connection, player_id: str) -> PlayerRecord | None:
        row = conn.execute(f"SELECT {_PLAYER_COLS} FROM players WHERE id = ?", (player_id,)).fetchone()
        return _row_to_player(row) if row else None

    def list_by_division(
        self,
        conn: sqlite3.Connection,
        division_id: str,
        season_id: str,
        undrafted_only: bool = True,
    ) -> list[PlayerRecord]:
        """Players ordered by last name, first name (the draft-number order)."""
        sql = f"SELECT {_PLAYER_COLS} FROM players WHERE division_id = ? AND season_id = ?"
        if undrafted_only:
            sql += " AND team_id IS NULL"
        sql += " ORDER BY last_name COLLATE NOCASE, first_name COLLATE NOCASE, id"
        rows = conn.execute(sql, (division_id, season_id)).fetchall()
        return [_row_to_player(r) for r in rows]

    def list_by_team(self, conn: sqlite3.Connection, team_id: str) -> list[PlayerRecord]:
        rows = conn.execute(
            f"SELECT {_PLAYER_COLS} FROM players WHERE team_id = ? ORDER BY last_name, first_name",
            (team_id,),
        ).fetchall()
        return [_row_to_player(r) for r in rows]

    def assign_team(self, conn: sqlite3.Connection, player_id: str, team_id: str) -> None:
        cur = conn.execute("UPDATE players SET team_id = ? WHERE id = ?", (team_id, player_id))
        if cur.rowcount == 0:
            raise NotFoundError(f"Player not found: {player_id}")
        conn.commit()


# ---------- VolunteerRepository ----------


_VOLUNTEER_COLS = (
    "id, division_id, season_id, name, family_id, email, phone, role, interested_roles, team_id"
)


def _row_to_volunteer(row: sqlite3.Row) -> VolunteerRecord:
    return VolunteerRecord(**{k: row[k] for k in row.keys()})


class VolunteerRepository:
    """Parent-volunteers. Commit writes (team_id, role)."""

    def create(self, conn: sqlite3.Connection, record: VolunteerRecord) -> VolunteerRecord:
        conn.execute(
            f"INSERT INTO volunteers ({_VOLUNTEER_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.division_id,
                record.season_id,
                record.name,
                record.family_id,
                record.email,
                record.phone,
                record.role,
                record.interested_roles,
                record.team_id,
            ),
        )
        conn.commit()
        return record

    def get(self, conn: sqlite3.Connection, volunteer_id: str) -> VolunteerRecord | None:
        row = conn.execute(f"SELECT {_VOLUNTEER_COLS} FROM volunteers WHERE id = ?", (volunteer_id,)).fetchone()
        return _row_to_volunteer(row) if row else None

    def list_by_families(
        self,
        conn: sqlite3.Connection,
        division_id: str,
        season_id: str,
        family_ids: Iterable[str],
    ) -> list[VolunteerRecord]:
        ids = sorted(set(family_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        args: tuple[Any, ...] = (division_id, season_id, *ids)
        rows = conn.execute(
            f"SELECT {_VOLUNTEER_COLS} FROM volunteers "
            f"WHERE division_id = ? AND season_id = ? AND family_id IN ({placeholders}) ORDER BY name, id",
            args,
        ).fetchall()
        return [_row_to_volunteer(r) for r in rows]

    def assign_team_role(self, conn: sqlite3.Connection, volunteer_id: str, team_id: str, role: str) -> None:
        cur = conn.execute(
            "UPDATE volunteers SET team_id = ?, role = ? WHERE id = ?", (team_id, role, volunteer_id)
        )
        if cur.rowcount == 0:
            raise NotFoundError(f"Volunteer not found: {volunteer_id}")
        conn.commit()


# ---------- CommitCheckpointRepository ----------


class CommitCheckpointRepository:
    """Per-(session, manager) record of a successful commit, for resume."""

    def load(self, conn: sqlite3.Connection, session_id: str) -> dict[str, tuple[str, str]]:
        """manager_id -> (team_id, fingerprint)."""
        rows = conn.execute(
            "SELECT manager_id, team_id, fingerprint FROM draft_commit_checkpoints WHERE session_id = ?",
            (session_id,),
        ).fetchall()
        return {r["manager_id"]: (r["team_id"], r["fingerprint"]) for r in rows}

    def save(
        self,
        conn: sqlite3.Connection,
        session_id: str,
        manager_id: str,
        team_id: str,
        fingerprint: str,
    ) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO draft_commit_checkpoints "
            "(session_id, manager_id, team_id, fingerprint, committed_at) VALUES (?, ?, ?, ?, ?)",
            (session_id, manager_id, team_id, fingerprint, _now()),
        )
        conn.commit()
