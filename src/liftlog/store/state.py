"""Immutable store state and the pure transitions over it.

Every function here takes a ``StoreState`` and returns a new one; nothing is
modified in place, so a committed state can be shared with listeners and
rolled back by simply keeping the previous value.
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any

from ..errors import ValidationError
from ..models import (
    ChatMessage,
    Conversation,
    Program,
    ProgramGoal,
    WorkoutDay,
    WorkoutLog,
    WorkoutSet,
)
from ..utils import parse_timestamp

# Fields that identify an entity and can never be changed through an update
_PROGRAM_FROZEN = {"id", "created_at"}
_LOG_FROZEN = {"id"}

_COLLECTIONS = ("programs", "workout_logs", "conversations")


@dataclass(frozen=True)
class StoreState:
    """Everything the local store holds.

    Collections are stored as tuples, so a state handed to a listener or
    read through ``LocalStore.state`` cannot be changed behind the store's
    back. Transitions may pass lists; they are converted on construction.
    """

    programs: tuple[Program, ...] = ()
    active_program_id: str | None = None
    workout_logs: tuple[WorkoutLog, ...] = ()
    current_workout: WorkoutLog | None = None
    conversations: tuple[Conversation, ...] = ()
    active_conversation_id: str | None = None

    def __post_init__(self):
        for name in _COLLECTIONS:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    @property
    def active_program(self) -> Program | None:
        return find_program(self, self.active_program_id) if self.active_program_id else None

    @property
    def active_conversation(self) -> Conversation | None:
        for conversation in self.conversations:
            if conversation.id == self.active_conversation_id:
                return conversation
        return None

    @property
    def chat_messages(self) -> list[ChatMessage]:
        """Messages of the active conversation (the synced chat history)."""
        conversation = self.active_conversation
        return list(conversation.messages) if conversation else []

    @property
    def has_data(self) -> bool:
        """Whether there is anything worth reconciling."""
        return bool(self.programs or self.workout_logs)


def find_program(state: StoreState, program_id: str) -> Program | None:
    for program in state.programs:
        if program.id == program_id:
            return program
    return None


def find_workout_log(state: StoreState, log_id: str) -> WorkoutLog | None:
    for log in state.workout_logs:
        if log.id == log_id:
            return log
    return None


def _checked_changes(entity: Any, changes: dict, frozen: set[str]) -> dict:
    allowed = {f.name for f in fields(entity)} - frozen
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(
            f"Cannot update {type(entity).__name__} field(s): {', '.join(sorted(unknown))}"
        )
    return changes


def coerce_program_fields(values: dict) -> dict:
    """Convert raw program field values to model types.

    Accepts what a caller would naturally pass: a goal name instead of a
    ProgramGoal, day dicts in the wire format instead of WorkoutDay objects.

    Raises:
        ValidationError: if a value cannot be converted
    """
    coerced = dict(values)
    if "name" in coerced and not (isinstance(coerced["name"], str) and coerced["name"].strip()):
        raise ValidationError("Program name is required")
    try:
        if "goal" in coerced:
            coerced["goal"] = ProgramGoal(coerced["goal"])
        if "workout_days" in coerced:
            coerced["workout_days"] = [
                day if isinstance(day, WorkoutDay) else WorkoutDay.from_dict(day)
                for day in coerced["workout_days"]
            ]
        for name in ("duration", "days_per_week"):
            if name in coerced:
                coerced[name] = int(coerced[name])
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid program data: {e}") from e
    return coerced


def coerce_log_fields(values: dict) -> dict:
    """Convert raw workout log field values to model types.

    Raises:
        ValidationError: if a value cannot be converted
    """
    coerced = dict(values)
    try:
        if "sets" in coerced:
            coerced["sets"] = [
                s if isinstance(s, WorkoutSet) else WorkoutSet.from_dict(s)
                for s in coerced["sets"]
            ]
        if isinstance(coerced.get("date"), str):
            coerced["date"] = parse_timestamp(coerced["date"])
        elif "date" in coerced and not isinstance(coerced["date"], datetime):
            raise ValidationError("date must be a datetime")
        if "duration" in coerced:
            coerced["duration"] = int(coerced["duration"])
        if coerced.get("rating") is not None:
            coerced["rating"] = int(coerced["rating"])
        if "completed" in coerced:
            coerced["completed"] = bool(coerced["completed"])
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid workout log data: {e}") from e
    return coerced


# Programs


def add_program(state: StoreState, program: Program) -> StoreState:
    if find_program(state, program.id) is not None:
        raise ValidationError(f"Program {program.id} already exists")
    return replace(state, programs=[*state.programs, program])


def update_program(
    state: StoreState, program_id: str, changes: dict, now: datetime
) -> StoreState:
    """Merge ``changes`` into a program and refresh its ``updated_at``.

    Returns the state unchanged if no program has that id.
    """
    current = find_program(state, program_id)
    if current is None:
        return state
    changes = coerce_program_fields(_checked_changes(current, changes, _PROGRAM_FROZEN))
    updated = replace(current, **{**changes, "updated_at": now})
    return replace(
        state,
        programs=[updated if p.id == program_id else p for p in state.programs],
    )


def delete_program(state: StoreState, program_id: str) -> StoreState:
    """Remove a program, clearing the active pointer if it pointed at it."""
    active = None if state.active_program_id == program_id else state.active_program_id
    return replace(
        state,
        programs=[p for p in state.programs if p.id != program_id],
        active_program_id=active,
    )


def set_active_program(state: StoreState, program_id: str | None) -> StoreState:
    if program_id is not None and find_program(state, program_id) is None:
        return state
    return replace(state, active_program_id=program_id)


# Workout history


def add_workout_log(state: StoreState, log: WorkoutLog) -> StoreState:
    if find_workout_log(state, log.id) is not None:
        raise ValidationError(f"Workout log {log.id} already exists")
    return replace(state, workout_logs=[*state.workout_logs, log])


def update_workout_log(state: StoreState, log_id: str, changes: dict) -> StoreState:
    current = find_workout_log(state, log_id)
    if current is None:
        return state
    changes = coerce_log_fields(_checked_changes(current, changes, _LOG_FROZEN))
    updated = replace(current, **changes)
    return replace(
        state,
        workout_logs=[updated if log.id == log_id else log for log in state.workout_logs],
    )


def delete_workout_log(state: StoreState, log_id: str) -> StoreState:
    return replace(
        state, workout_logs=[log for log in state.workout_logs if log.id != log_id]
    )


# Current workout


def set_current_workout(state: StoreState, log: WorkoutLog | None) -> StoreState:
    return replace(state, current_workout=log)


def finish_current_workout(state: StoreState, finished: WorkoutLog) -> StoreState:
    """Append the finished log to history and clear the current workout."""
    return replace(
        state,
        workout_logs=[*state.workout_logs, finished],
        current_workout=None,
    )


# Chat


def start_conversation(state: StoreState, conversation: Conversation) -> StoreState:
    return replace(
        state,
        conversations=[*state.conversations, conversation],
        active_conversation_id=conversation.id,
    )


def set_active_conversation(state: StoreState, conversation_id: str | None) -> StoreState:
    if conversation_id is not None and not any(
        c.id == conversation_id for c in state.conversations
    ):
        return state
    return replace(state, active_conversation_id=conversation_id)


def _replace_active_conversation(state: StoreState, conversation: Conversation) -> StoreState:
    return replace(
        state,
        conversations=[
            conversation if c.id == conversation.id else c for c in state.conversations
        ],
    )


def add_chat_message(state: StoreState, message: ChatMessage, now: datetime) -> StoreState:
    """Append a message to the active conversation, creating one if needed."""
    if state.active_conversation is None:
        state = start_conversation(state, Conversation(created_at=now, updated_at=now))
    conversation = state.active_conversation
    updated = replace(
        conversation, messages=[*conversation.messages, message], updated_at=now
    )
    return _replace_active_conversation(state, updated)


def clear_chat_history(state: StoreState, now: datetime) -> StoreState:
    conversation = state.active_conversation
    if conversation is None or not conversation.messages:
        return state
    return _replace_active_conversation(
        state, replace(conversation, messages=[], updated_at=now)
    )


def replace_chat_messages(
    state: StoreState, messages: list[ChatMessage], now: datetime
) -> StoreState:
    """Make ``messages`` the content of the active conversation."""
    if state.active_conversation is None:
        if not messages:
            return state
        state = start_conversation(state, Conversation(created_at=now, updated_at=now))
    return _replace_active_conversation(
        state, replace(state.active_conversation, messages=list(messages), updated_at=now)
    )
