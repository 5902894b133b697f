"""Reconciles the local store with the remote collaborator.

On start the engine checks the remote is reachable, fetches its snapshot and decides:

* remote has data, local has none: adopt the remote state wholesale
* local has data, remote has none: push the local state wholesale
* neither has data: nothing to do
* both have data: merge by recency, commit locally, push the merge back

Afterwards every sync-relevant mutation is pushed individually through the
outbox. ``pull()`` overwrites local programs and history with the remote
snapshot. Reconciliation never drops chat: remote messages are unioned in.
"""

from dataclasses import dataclass
from enum import Enum

from ..errors import SyncTransportError
from ..log import get_logger
from ..store import LocalStore
from .base import RemoteSyncClient, SyncSnapshot
from .merge import merge_chat, merge_snapshots
from .outbox import SyncOutbox

logger = get_logger(__name__)


class SyncStatus(str, Enum):
    DISABLED = "disabled"
    OFFLINE = "offline"
    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


class ReconcileAction(str, Enum):
    """What a reconcile or pull ended up doing."""

    ADOPTED_REMOTE = "adopted_remote"
    PUSHED_LOCAL = "pushed_local"
    MERGED = "merged"
    PULLED = "pulled"
    NOOP = "noop"
    SKIPPED_BUSY = "skipped_busy"
    DISABLED = "disabled"
    OFFLINE = "offline"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    action: ReconcileAction
    programs: int = 0
    workout_logs: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.action is not ReconcileAction.FAILED


def local_snapshot(store: LocalStore) -> SyncSnapshot:
    """The store's synchronized collections as they are right now."""
    state = store.state
    return SyncSnapshot(
        programs=list(state.programs),
        active_program_id=state.active_program_id,
        workout_logs=list(state.workout_logs),
        chat_messages=state.chat_messages,
    )


class ReconciliationEngine:
    """Keeps one LocalStore and one remote converged.

    Overlapping ``reconcile()``/``pull()`` calls are coalesced: while one is
    in flight, any other returns ``SKIPPED_BUSY`` immediately. Local
    mutations are never blocked.
    """

    def __init__(self, store: LocalStore, remote: RemoteSyncClient | None):
        self.store = store
        self.remote = remote
        self.outbox = (
            SyncOutbox(remote, self._on_push_error, self._on_push_success) if remote else None
        )
        self.busy = False
        self.online = False
        self._unsubscribe = None
        self._set_status(SyncStatus.DISABLED if remote is None else SyncStatus.IDLE)

    @property
    def status(self) -> SyncStatus:
        return self._status

    def _set_status(self, status: SyncStatus) -> None:
        self._status = status
        self.store.sync_status = status.value

    def _on_push_error(self, error: Exception) -> None:
        self._set_status(SyncStatus.ERROR)

    def _on_push_success(self) -> None:
        if not self.busy:
            self._set_status(SyncStatus.SYNCED)

    async def connect(self) -> bool:
        """Check the remote is reachable and, if it is up, begin pushing mutations.

        An unreachable remote disables sync for the rest of the session.
        """
        if self.remote is None:
            return False

        if not await self.remote.is_available():
            self.online = False
            self._set_status(SyncStatus.OFFLINE)
            logger.info("sync unavailable, working locally")
            return False

        self.online = True
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.outbox)
            self.outbox.start()
        return True

    async def start(self) -> ReconcileResult:
        """Connect and reconcile once."""
        if not await self.connect():
            action = ReconcileAction.DISABLED if self.remote is None else ReconcileAction.OFFLINE
            return ReconcileResult(action)
        return await self.reconcile()

    async def reconcile(self) -> ReconcileResult:
        """Fetch the remote snapshot and converge both sides."""
        guard = self._check_ready()
        if guard is not None:
            return guard

        self.busy = True
        self._set_status(SyncStatus.SYNCING)
        try:
            remote = await self.remote.fetch_all()
            # No suspension from here until the commit below, so mutations
            # made while the fetch was in flight are part of the merge.
            local = local_snapshot(self.store)
            result, to_push = self._apply(local, remote)
            if to_push is not None:
                await self.remote.push_all(to_push)
        except SyncTransportError as e:
            self._set_status(SyncStatus.ERROR)
            logger.warning("reconcile failed", error=str(e))
            return ReconcileResult(ReconcileAction.FAILED, error=str(e))
        finally:
            self.busy = False

        self._set_status(SyncStatus.SYNCED)
        logger.info(
            "reconciled",
            action=result.action.value,
            programs=result.programs,
            workout_logs=result.workout_logs,
        )
        return result

    def _apply(
        self, local: SyncSnapshot, remote: SyncSnapshot
    ) -> tuple[ReconcileResult, SyncSnapshot | None]:
        if remote.has_data and not local.has_data:
            self.store.replace_synced_state(
                remote.programs,
                remote.active_program_id,
                remote.workout_logs,
                merge_chat(local.chat_messages, remote.chat_messages),
            )
            return self._result(ReconcileAction.ADOPTED_REMOTE, remote), None

        if local.has_data and not remote.has_data:
            return self._result(ReconcileAction.PUSHED_LOCAL, local), local

        if not local.has_data:
            return ReconcileResult(ReconcileAction.NOOP), None

        merged = merge_snapshots(local, remote)
        self.store.replace_synced_state(
            merged.programs,
            merged.active_program_id,
            merged.workout_logs,
            merged.chat_messages,
        )
        return self._result(ReconcileAction.MERGED, merged), merged

    @staticmethod
    def _result(action: ReconcileAction, snapshot: SyncSnapshot) -> ReconcileResult:
        return ReconcileResult(
            action,
            programs=len(snapshot.programs),
            workout_logs=len(snapshot.workout_logs),
        )

    async def pull(self) -> ReconcileResult:
        """Overwrite local programs and history with the remote's.

        Remote chat is unioned into local chat, so messages the remote has
        not seen yet survive.
        """
        guard = self._check_ready()
        if guard is not None:
            return guard

        self.busy = True
        self._set_status(SyncStatus.SYNCING)
        try:
            remote = await self.remote.fetch_all()
        except SyncTransportError as e:
            self._set_status(SyncStatus.ERROR)
            logger.warning("pull failed", error=str(e))
            return ReconcileResult(ReconcileAction.FAILED, error=str(e))
        finally:
            self.busy = False

        self.store.replace_synced_state(
            remote.programs,
            remote.active_program_id,
            remote.workout_logs,
            merge_chat(self.store.chat_messages, remote.chat_messages),
        )
        self._set_status(SyncStatus.SYNCED)
        return self._result(ReconcileAction.PULLED, remote)

    async def push_all(self) -> ReconcileResult:
        """Push the whole local state, without fetching first."""
        guard = self._check_ready()
        if guard is not None:
            return guard

        snapshot = local_snapshot(self.store)
        self.busy = True
        self._set_status(SyncStatus.SYNCING)
        try:
            await self.remote.push_all(snapshot)
        except SyncTransportError as e:
            self._set_status(SyncStatus.ERROR)
            logger.warning("push failed", error=str(e))
            return ReconcileResult(ReconcileAction.FAILED, error=str(e))
        finally:
            self.busy = False

        self._set_status(SyncStatus.SYNCED)
        return self._result(ReconcileAction.PUSHED_LOCAL, snapshot)

    def _check_ready(self) -> ReconcileResult | None:
        if self.remote is None:
            return ReconcileResult(ReconcileAction.DISABLED)
        if not self.online:
            return ReconcileResult(ReconcileAction.OFFLINE)
        if self.busy:
            logger.debug("sync already in flight, trigger coalesced")
            return ReconcileResult(ReconcileAction.SKIPPED_BUSY)
        return None

    async def flush(self) -> None:
        """Wait for every queued push to be attempted."""
        if self.outbox is not None and self._unsubscribe is not None:
            await self.outbox.flush()

    async def stop(self) -> None:
        """Stop pushing mutations. Queued pushes that were not sent are dropped."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.outbox is not None:
            await self.outbox.stop()
