"""Durable backing stores for the local state.

Persistence is an observer of the store: every committed state is handed to
``PersistenceObserver`` which writes it through a backend before the
mutating call returns.
"""

import json
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..errors import PersistenceError
from ..log import get_logger
from ..models import Conversation, Program, WorkoutLog
from .state import StoreState

if TYPE_CHECKING:
    from .store import StoreEvent

logger = get_logger(__name__)


@runtime_checkable
class StateBackend(Protocol):
    """Protocol for durable state storage."""

    def load(self) -> StoreState:
        """Return the last saved state, or an empty state."""
        ...

    def save(self, state: StoreState) -> None:
        """Durably write ``state``; raise PersistenceError on failure."""
        ...

    def close(self) -> None:
        ...


class MemoryBackend:
    """Keeps the last saved state in memory, serialized like a real backend.

    Serializing on save means a loaded state never shares entity objects
    with the state that was saved.
    """

    def __init__(self):
        self._saved: dict | None = None
        self.save_count = 0

    def load(self) -> StoreState:
        if self._saved is None:
            return StoreState()
        return _state_from_dict(self._saved)

    def save(self, state: StoreState) -> None:
        self._saved = _state_to_dict(state)
        self.save_count += 1

    def close(self) -> None:
        pass


class SqliteStateBackend:
    """Stores each entity as a JSON document row in a local SQLite file."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.db_path)
            self._init_schema()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open local database {self.db_path}: {e}") from e

    def _init_schema(self) -> None:
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS programs (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS workout_logs (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    data TEXT NOT NULL,
                    date TEXT NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS conversations (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    data TEXT NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

    def load(self) -> StoreState:
        try:
            programs = [
                Program.from_dict(json.loads(row[0]))
                for row in self._conn.execute("SELECT data FROM programs ORDER BY position")
            ]
            logs = [
                WorkoutLog.from_dict(json.loads(row[0]))
                for row in self._conn.execute(
                    "SELECT data FROM workout_logs ORDER BY position"
                )
            ]
            conversations = [
                Conversation.from_dict(json.loads(row[0]))
                for row in self._conn.execute(
                    "SELECT data FROM conversations ORDER BY position"
                )
            ]
            meta = dict(self._conn.execute("SELECT key, value FROM meta").fetchall())
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot read local database: {e}") from e

        current = meta.get("current_workout")
        return StoreState(
            programs=programs,
            active_program_id=meta.get("active_program_id"),
            workout_logs=logs,
            current_workout=WorkoutLog.from_dict(json.loads(current)) if current else None,
            conversations=conversations,
            active_conversation_id=meta.get("active_conversation_id"),
        )

    def save(self, state: StoreState) -> None:
        # Serialize everything before touching the database
        current = state.current_workout
        meta = {
            "active_program_id": state.active_program_id,
            "active_conversation_id": state.active_conversation_id,
            "current_workout": json.dumps(current.to_dict()) if current else None,
        }
        programs = [
            (p.id, i, json.dumps(p.to_dict()), p.updated_at.isoformat())
            for i, p in enumerate(state.programs)
        ]
        logs = [
            (log.id, i, json.dumps(log.to_dict()), log.date.isoformat())
            for i, log in enumerate(state.workout_logs)
        ]
        conversations = [
            (c.id, i, json.dumps(c.to_dict())) for i, c in enumerate(state.conversations)
        ]
        try:
            with self._conn:
                self._conn.execute("DELETE FROM programs")
                self._conn.executemany(
                    "INSERT INTO programs (id, position, data, updated_at) VALUES (?, ?, ?, ?)",
                    programs,
                )
                self._conn.execute("DELETE FROM workout_logs")
                self._conn.executemany(
                    "INSERT INTO workout_logs (id, position, data, date) VALUES (?, ?, ?, ?)",
                    logs,
                )
                self._conn.execute("DELETE FROM conversations")
                self._conn.executemany(
                    "INSERT INTO conversations (id, position, data) VALUES (?, ?, ?)",
                    conversations,
                )
                self._conn.executemany(
                    "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
                    list(meta.items()),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot write local database: {e}") from e

    def close(self) -> None:
        self._conn.close()


class PersistenceObserver:
    """Store listener that writes every committed state to a backend.

    A state that cannot even be serialized is reported as PersistenceError
    too, so the store rolls it back like any other failed write.
    """

    def __init__(self, backend: StateBackend):
        self.backend = backend

    def __call__(self, state: StoreState, event: "StoreEvent") -> None:
        try:
            self.backend.save(state)
        except (AttributeError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize state: {e}") from e
        logger.debug("state persisted", kind=event.kind.value)


def _state_to_dict(state: StoreState) -> dict:
    return {
        "programs": [p.to_dict() for p in state.programs],
        "active_program_id": state.active_program_id,
        "workout_logs": [log.to_dict() for log in state.workout_logs],
        "current_workout": state.current_workout.to_dict() if state.current_workout else None,
        "conversations": [c.to_dict() for c in state.conversations],
        "active_conversation_id": state.active_conversation_id,
    }


def _state_from_dict(data: dict) -> StoreState:
    current = data.get("current_workout")
    return StoreState(
        programs=[Program.from_dict(p) for p in data["programs"]],
        active_program_id=data.get("active_program_id"),
        workout_logs=[WorkoutLog.from_dict(log) for log in data["workout_logs"]],
        current_workout=WorkoutLog.from_dict(current) if current else None,
        conversations=[Conversation.from_dict(c) for c in data["conversations"]],
        active_conversation_id=data.get("active_conversation_id"),
    )
