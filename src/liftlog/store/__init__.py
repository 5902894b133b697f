"""Local-first state store for liftlog."""

from .persistence import MemoryBackend, PersistenceObserver, SqliteStateBackend, StateBackend
from .snapshot import EXPORT_VERSION, ImportedSnapshot, export_snapshot, parse_snapshot
from .state import StoreState
from .store import LocalStore, MutationKind, StoreEvent

__all__ = [
    "EXPORT_VERSION",
    "ImportedSnapshot",
    "LocalStore",
    "MemoryBackend",
    "MutationKind",
    "PersistenceObserver",
    "SqliteStateBackend",
    "StateBackend",
    "StoreEvent",
    "StoreState",
    "export_snapshot",
    "parse_snapshot",
]
