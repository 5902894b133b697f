"""The local store: the client-side source of truth."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from ..errors import PersistenceError, SnapshotError, ValidationError
from ..log import get_logger
from ..models import ChatMessage, ChatRole, Conversation, Program, WorkoutLog
from ..utils import new_id, utcnow
from . import state as transitions
from .persistence import MemoryBackend, PersistenceObserver, SqliteStateBackend, StateBackend
from .snapshot import export_snapshot, parse_snapshot
from .state import StoreState

logger = get_logger(__name__)


class MutationKind(str, Enum):
    """What a committed mutation did."""

    PROGRAM_ADDED = "program_added"
    PROGRAM_UPDATED = "program_updated"
    PROGRAM_DELETED = "program_deleted"
    ACTIVE_PROGRAM_CHANGED = "active_program_changed"
    WORKOUT_LOG_ADDED = "workout_log_added"
    WORKOUT_LOG_UPDATED = "workout_log_updated"
    WORKOUT_LOG_DELETED = "workout_log_deleted"
    WORKOUT_STARTED = "workout_started"
    WORKOUT_UPDATED = "workout_updated"
    WORKOUT_FINISHED = "workout_finished"
    WORKOUT_CANCELLED = "workout_cancelled"
    CHAT_MESSAGE_ADDED = "chat_message_added"
    CHAT_CLEARED = "chat_cleared"
    CHAT_UPDATED = "chat_updated"
    SNAPSHOT_IMPORTED = "snapshot_imported"
    SYNC_APPLIED = "sync_applied"


# Mutations that are pushed to the remote collaborator one by one
SYNC_RELEVANT = frozenset({
    MutationKind.PROGRAM_ADDED,
    MutationKind.PROGRAM_UPDATED,
    MutationKind.PROGRAM_DELETED,
    MutationKind.ACTIVE_PROGRAM_CHANGED,
    MutationKind.WORKOUT_LOG_ADDED,
    MutationKind.WORKOUT_LOG_UPDATED,
    MutationKind.WORKOUT_LOG_DELETED,
    MutationKind.WORKOUT_FINISHED,
    MutationKind.CHAT_MESSAGE_ADDED,
    MutationKind.CHAT_CLEARED,
})


@dataclass(frozen=True)
class StoreEvent:
    """Notification sent to listeners after a mutation is committed."""

    kind: MutationKind
    entity_id: str | None = None

    @property
    def sync_relevant(self) -> bool:
        return self.kind in SYNC_RELEVANT


Listener = Callable[[StoreState, StoreEvent], None]


class LocalStore:
    """Holds all entities and commits every mutation through one path.

    Listeners run synchronously, in subscription order, after each commit.
    The first listener is always the persistence observer, so a mutation is
    durable before the call that made it returns. If persisting fails the
    in-memory state is rolled back and PersistenceError propagates.
    """

    def __init__(
        self,
        backend: StateBackend | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.backend = backend if backend is not None else MemoryBackend()
        self.clock = clock
        self._state = self.backend.load()
        self._listeners: list[Listener] = [PersistenceObserver(self.backend)]
        # Ephemeral, never persisted
        self.sync_status = "disabled"

    @classmethod
    def open(cls, db_path: Path, clock: Callable[[], datetime] = utcnow) -> "LocalStore":
        """Open (or create) a store backed by a SQLite file."""
        return cls(SqliteStateBackend(db_path), clock=clock)

    def close(self) -> None:
        self.backend.close()

    # Reading

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def programs(self) -> list[Program]:
        return list(self._state.programs)

    @property
    def active_program(self) -> Program | None:
        return self._state.active_program

    @property
    def workout_logs(self) -> list[WorkoutLog]:
        return list(self._state.workout_logs)

    @property
    def current_workout(self) -> WorkoutLog | None:
        return self._state.current_workout

    @property
    def conversations(self) -> list[Conversation]:
        return list(self._state.conversations)

    @property
    def chat_messages(self) -> list[ChatMessage]:
        return self._state.chat_messages

    def get_program(self, program_id: str) -> Program | None:
        return transitions.find_program(self._state, program_id)

    def get_workout_log(self, log_id: str) -> WorkoutLog | None:
        return transitions.find_workout_log(self._state, log_id)

    # Subscriptions

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: StoreState, event: StoreEvent) -> None:
        previous = self._state
        self._state = new_state
        try:
            for listener in list(self._listeners):
                listener(new_state, event)
        except PersistenceError:
            self._state = previous
            logger.error("mutation rolled back", kind=event.kind.value)
            raise

    # Programs

    def add_program(self, data: dict[str, Any] | Program) -> Program:
        """Add a program with a fresh id and timestamps and return it."""
        now = self.clock()
        if isinstance(data, Program):
            program = replace(data, id=new_id(), created_at=now, updated_at=now)
        else:
            fields = transitions.coerce_program_fields({
                k: v for k, v in data.items() if k not in ("id", "created_at", "updated_at")
            })
            try:
                program = Program(**fields, created_at=now, updated_at=now)
            except TypeError as e:
                raise ValidationError(f"Invalid program data: {e}") from e
        self._commit(
            transitions.add_program(self._state, program),
            StoreEvent(MutationKind.PROGRAM_ADDED, program.id),
        )
        logger.info("program added", program_id=program.id, name=program.name)
        return program

    def update_program(self, program_id: str, **changes: Any) -> Program | None:
        """Merge changes into a program. Unknown ids are a no-op."""
        new_state = transitions.update_program(self._state, program_id, changes, self.clock())
        if new_state is self._state:
            logger.debug("update of unknown program ignored", program_id=program_id)
            return None
        self._commit(new_state, StoreEvent(MutationKind.PROGRAM_UPDATED, program_id))
        return self.get_program(program_id)

    def delete_program(self, program_id: str) -> bool:
        """Delete a program (and its embedded days). Returns whether it existed."""
        if self.get_program(program_id) is None:
            return False
        self._commit(
            transitions.delete_program(self._state, program_id),
            StoreEvent(MutationKind.PROGRAM_DELETED, program_id),
        )
        logger.info("program deleted", program_id=program_id)
        return True

    def set_active_program(self, program: Program | str | None) -> None:
        """Make one program (or none) the active program."""
        program_id = program.id if isinstance(program, Program) else program
        new_state = transitions.set_active_program(self._state, program_id)
        if new_state is self._state:
            logger.warning("cannot activate unknown program", program_id=program_id)
            return
        self._commit(new_state, StoreEvent(MutationKind.ACTIVE_PROGRAM_CHANGED, program_id))

    # Workout history

    def add_workout_log(self, log: WorkoutLog) -> WorkoutLog:
        """Append a finished workout to history (e.g. a manual entry)."""
        if not log.completed:
            log = replace(log, completed=True)
        self._commit(
            transitions.add_workout_log(self._state, log),
            StoreEvent(MutationKind.WORKOUT_LOG_ADDED, log.id),
        )
        return log

    def update_workout_log(self, log_id: str, **changes: Any) -> WorkoutLog | None:
        """Correct a logged workout. Unknown ids are a no-op."""
        new_state = transitions.update_workout_log(self._state, log_id, changes)
        if new_state is self._state:
            return None
        self._commit(new_state, StoreEvent(MutationKind.WORKOUT_LOG_UPDATED, log_id))
        return self.get_workout_log(log_id)

    def delete_workout_log(self, log_id: str) -> bool:
        if self.get_workout_log(log_id) is None:
            return False
        self._commit(
            transitions.delete_workout_log(self._state, log_id),
            StoreEvent(MutationKind.WORKOUT_LOG_DELETED, log_id),
        )
        return True

    # Current workout (driven by the session state machine)

    def put_current_workout(self, log: WorkoutLog, started: bool = False) -> None:
        kind = MutationKind.WORKOUT_STARTED if started else MutationKind.WORKOUT_UPDATED
        self._commit(transitions.set_current_workout(self._state, log), StoreEvent(kind, log.id))

    def commit_finished_workout(self, log: WorkoutLog) -> None:
        self._commit(
            transitions.finish_current_workout(self._state, log),
            StoreEvent(MutationKind.WORKOUT_FINISHED, log.id),
        )

    def discard_current_workout(self) -> None:
        current = self._state.current_workout
        self._commit(
            transitions.set_current_workout(self._state, None),
            StoreEvent(MutationKind.WORKOUT_CANCELLED, current.id if current else None),
        )

    # Chat

    def add_chat_message(self, role: ChatRole | str, content: str) -> ChatMessage:
        now = self.clock()
        message = ChatMessage(role=ChatRole(role), content=content, timestamp=now)
        self._commit(
            transitions.add_chat_message(self._state, message, now),
            StoreEvent(MutationKind.CHAT_MESSAGE_ADDED, message.id),
        )
        return message

    def clear_chat_history(self) -> None:
        new_state = transitions.clear_chat_history(self._state, self.clock())
        if new_state is not self._state:
            self._commit(new_state, StoreEvent(MutationKind.CHAT_CLEARED))

    def start_conversation(self, title: str = "Coaching chat") -> Conversation:
        now = self.clock()
        conversation = Conversation(title=title, created_at=now, updated_at=now)
        self._commit(
            transitions.start_conversation(self._state, conversation),
            StoreEvent(MutationKind.CHAT_UPDATED, conversation.id),
        )
        return conversation

    def set_active_conversation(self, conversation_id: str | None) -> None:
        new_state = transitions.set_active_conversation(self._state, conversation_id)
        if new_state is not self._state:
            self._commit(new_state, StoreEvent(MutationKind.CHAT_UPDATED, conversation_id))

    # Backup / restore

    def export_snapshot(self) -> str:
        """Serialize programs, active program, history and chat to JSON."""
        return export_snapshot(self._state, self.clock())

    def import_snapshot(self, blob: str | bytes | dict) -> bool:
        """Replace programs, history and chat with a backup's contents.

        This is a destructive restore, not a merge. Returns False and leaves
        the store untouched if the backup is malformed.
        """
        try:
            imported = parse_snapshot(blob)
        except SnapshotError as e:
            logger.warning("backup rejected", reason=str(e))
            return False

        new_state = replace(
            self._state,
            programs=imported.programs,
            active_program_id=imported.active_program_id,
            workout_logs=imported.workout_logs,
            conversations=imported.conversations,
            active_conversation_id=imported.active_conversation_id,
        )
        self._commit(new_state, StoreEvent(MutationKind.SNAPSHOT_IMPORTED))
        logger.info(
            "backup imported",
            programs=len(imported.programs),
            workout_logs=len(imported.workout_logs),
        )
        return True

    # Reconciliation

    def replace_synced_state(
        self,
        programs: list[Program],
        active_program_id: str | None,
        workout_logs: list[WorkoutLog],
        chat_messages: list[ChatMessage] | None = None,
    ) -> None:
        """Commit state produced by reconciliation or a pull.

        The resulting event is not sync-relevant, so applying remote state
        never echoes back to the remote as individual pushes.
        """
        new_state = replace(
            self._state,
            programs=list(programs),
            workout_logs=list(workout_logs),
            active_program_id=None,
        )
        new_state = transitions.set_active_program(new_state, active_program_id)
        if chat_messages is not None:
            new_state = transitions.replace_chat_messages(new_state, chat_messages, self.clock())
        self._commit(new_state, StoreEvent(MutationKind.SYNC_APPLIED))
