"""Data models for liftlog."""

from .chat import ChatMessage, ChatRole, Conversation
from .program import Program, ProgramGoal, WorkoutDay, WorkoutSet
from .stats import PersonalRecord, UserStats
from .workout import WorkoutLog

__all__ = [
    "ChatMessage",
    "ChatRole",
    "Conversation",
    "PersonalRecord",
    "Program",
    "ProgramGoal",
    "UserStats",
    "WorkoutDay",
    "WorkoutLog",
    "WorkoutSet",
]
