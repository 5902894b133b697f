"""Active-workout session state machine."""

from .machine import SessionOutcome, SessionState, WorkoutSession
from .timers import (
    DEFAULT_REST_SECONDS,
    ElapsedTimer,
    RestTimer,
    SessionTimers,
    format_elapsed,
    parse_rest_duration,
)

__all__ = [
    "DEFAULT_REST_SECONDS",
    "ElapsedTimer",
    "RestTimer",
    "SessionOutcome",
    "SessionState",
    "SessionTimers",
    "WorkoutSession",
    "format_elapsed",
    "parse_rest_duration",
]
