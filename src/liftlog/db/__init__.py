"""Database layer for the liftlog sync server."""

from .engine import get_server_db_path, init_db
from .repositories import (
    ChatRepository,
    ProgramRepository,
    UserRepository,
    WorkoutRepository,
)

__all__ = [
    "ChatRepository",
    "get_server_db_path",
    "init_db",
    "ProgramRepository",
    "UserRepository",
    "WorkoutRepository",
]
