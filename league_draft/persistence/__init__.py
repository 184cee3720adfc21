"""
Persistence layer for league roster data.
No business logic; only read/write interfaces.
"""
from .db import get_connection, init_db, set_db_path
from .repositories import (
    CommitCheckpointRepository,
    DivisionRepository,
    PlayerRepository,
    SeasonRepository,
    TeamRepository,
    VolunteerRepository,
)

__all__ = [
    "get_connection",
    "init_db",
    "set_db_path",
    "CommitCheckpointRepository",
    "DivisionRepository",
    "PlayerRepository",
    "SeasonRepository",
    "TeamRepository",
    "VolunteerRepository",
]
