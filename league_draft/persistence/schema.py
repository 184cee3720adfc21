"""
SQLite schema for league roster entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def divisions_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS divisions (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """


def seasons_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS seasons (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """


def teams_schema() -> str:
    """Teams exist before the draft; commit writes manager_name / volunteer_manager_id."""
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        division_id TEXT NOT NULL,
        season_id TEXT NOT NULL,
        name TEXT NOT NULL,
        color TEXT,
        manager_name TEXT,
        volunteer_manager_id TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (division_id) REFERENCES divisions(id),
        FOREIGN KEY (season_id) REFERENCES seasons(id)
    );
    CREATE INDEX IF NOT EXISTS ix_teams_division_season ON teams(division_id, season_id);
    """


def players_schema() -> str:
    """team_id NULL = undrafted."""
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        division_id TEXT NOT NULL,
        season_id TEXT NOT NULL,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        family_id TEXT,
        birth_date TEXT,
        gender TEXT,
        is_travel_player INTEGER NOT NULL DEFAULT 0,
        is_new_player INTEGER NOT NULL DEFAULT 0,
        team_id TEXT,
        FOREIGN KEY (division_id) REFERENCES divisions(id),
        FOREIGN KEY (season_id) REFERENCES seasons(id),
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_players_division_season ON players(division_id, season_id);
    CREATE INDEX IF NOT EXISTS ix_players_family ON players(family_id);
    """


def volunteers_schema() -> str:
    """interested_roles: free text from registration (newline/comma/semicolon separated or JSON list)."""
    return """
    CREATE TABLE IF NOT EXISTS volunteers (
        id TEXT PRIMARY KEY,
        division_id TEXT NOT NULL,
        season_id TEXT NOT NULL,
        name TEXT NOT NULL,
        family_id TEXT,
        email TEXT,
        phone TEXT,
        role TEXT,
        interested_roles TEXT,
        team_id TEXT,
        FOREIGN KEY (division_id) REFERENCES divisions(id),
        FOREIGN KEY (season_id) REFERENCES seasons(id),
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_volunteers_family ON volunteers(family_id);
    """


def draft_commit_checkpoints_schema() -> str:
    """One row per (session, manager) whose roster writes succeeded."""
    return """
    CREATE TABLE IF NOT EXISTS draft_commit_checkpoints (
        session_id TEXT NOT NULL,
        manager_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        fingerprint TEXT NOT NULL,
        committed_at TEXT NOT NULL,
        PRIMARY KEY (session_id, manager_id)
    );
    """


def all_schema_sql() -> str:
    return (
        divisions_schema()
        + seasons_schema()
        + teams_schema()
        + players_schema()
        + volunteers_schema()
        + draft_commit_checkpoints_schema()
    )
