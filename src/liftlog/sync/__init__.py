"""Reconciliation between the local store and a remote sync server."""

from .base import RemoteSyncClient, SyncSnapshot
from .device import get_or_create_device_id
from .engine import (
    ReconcileAction,
    ReconcileResult,
    ReconciliationEngine,
    SyncStatus,
    local_snapshot,
)
from .http_client import HttpSyncClient
from .memory import InMemoryRemote
from .merge import merge_by_recency, merge_chat, merge_snapshots
from .outbox import PushOperation, SyncOutbox

__all__ = [
    "HttpSyncClient",
    "InMemoryRemote",
    "PushOperation",
    "ReconcileAction",
    "ReconcileResult",
    "ReconciliationEngine",
    "RemoteSyncClient",
    "SyncOutbox",
    "SyncSnapshot",
    "SyncStatus",
    "get_or_create_device_id",
    "local_snapshot",
    "merge_by_recency",
    "merge_chat",
    "merge_snapshots",
]
