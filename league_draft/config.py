"""
Runtime settings from environment variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://0.0.0.0:5173",
    "http://[::1]:5173",
)


@dataclass(frozen=True)
class Settings:
    db_path: str = "data/league.db"
    buffer_rounds: int = 2
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def get_settings() -> Settings:
    """Read settings now (not cached, so tests can monkeypatch the environment)."""
    origins_raw = os.environ.get("LEAGUE_DRAFT_CORS_ORIGINS", "").strip()
    origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip()) or DEFAULT_CORS_ORIGINS
    return Settings(
        db_path=os.environ.get("LEAGUE_DRAFT_DB_PATH", "").strip() or Settings.db_path,
        buffer_rounds=_int_env("LEAGUE_DRAFT_BUFFER_ROUNDS", Settings.buffer_rounds),
        cors_origins=origins,
    )
