"""
Database connection and initialization.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path

from league_draft.config import get_settings

from .schema import all_schema_sql


def _run_team_manager_migration(conn: sqlite3.Connection) -> None:
    """Add volunteer_manager_id to teams (older DBs stored only manager_name)."""
    cur = conn.execute("PRAGMA table_info(teams)")
    cols = [row[1] for row in cur.fetchall()]
    if "volunteer_manager_id" not in cols:
        conn.execute("ALTER TABLE teams ADD COLUMN volunteer_manager_id TEXT")


# Default DB path (LEAGUE_DRAFT_DB_PATH, relative to project root)
def _default_db_path() -> Path:
    configured = Path(get_settings().db_path)
    if configured.is_absolute():
        return configured
    return Path(__file__).resolve().parent.parent.parent / configured


_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Set the database path. Call before first get_connection if not using default."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Return the current database path."""
    if _db_path is not None:
        return _db_path
    return _default_db_path()


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection.
    Use as context manager or ensure close() is called.
    check_same_thread is off: FastAPI may finish a request on another worker thread.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(
    db_path: str | Path | None = None,
    seed_path: str | Path | None = None,
) -> None:
    """
    Create or ensure all tables exist.
    If seed_path is provided, also import a roster JSON file
    (uses league_draft.roster_loader).
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    try:
        conn.executescript(all_schema_sql())
        _run_team_manager_migration(conn)
        conn.commit()
        if seed_path:
            from league_draft.roster_loader import import_roster_json
            import_roster_json(conn, Path(seed_path))
            conn.commit()
    finally:
        conn.close()
