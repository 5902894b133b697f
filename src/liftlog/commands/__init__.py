"""CLI commands for liftlog."""

from .backup import backup
from .chat import chat
from .history import history
from .init import init
from .programs import programs
from .serve import serve
from .stats import stats
from .sync import sync
from .workout import workout

__all__ = [
    "backup",
    "chat",
    "history",
    "init",
    "programs",
    "serve",
    "stats",
    "sync",
    "workout",
]
