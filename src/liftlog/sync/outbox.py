"""Queue of fire-and-forget pushes to the remote."""

import asyncio
from dataclasses import dataclass
from typing import Callable

from ..errors import SyncTransportError
from ..log import get_logger
from ..models import ChatMessage, Program, WorkoutLog
from ..store import MutationKind, StoreEvent, StoreState
from .base import RemoteSyncClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class PushOperation:
    """One pending remote call, with the entity as it was when queued."""

    kind: MutationKind
    entity_id: str | None
    program: Program | None = None
    log: WorkoutLog | None = None
    message: ChatMessage | None = None

    async def send(self, remote: RemoteSyncClient) -> None:
        if self.program is not None:
            await remote.upsert_program(self.program)
        elif self.log is not None:
            await remote.upsert_workout(self.log)
        elif self.message is not None:
            await remote.push_chat_message(self.message)
        elif self.kind is MutationKind.CHAT_CLEARED:
            await remote.clear_chat()
        elif self.kind is MutationKind.PROGRAM_DELETED:
            await remote.delete_program(self.entity_id)
        elif self.kind is MutationKind.WORKOUT_LOG_DELETED:
            await remote.delete_workout(self.entity_id)
        elif self.kind is MutationKind.ACTIVE_PROGRAM_CHANGED:
            await remote.set_active_program(self.entity_id)


def operation_for(state: StoreState, event: StoreEvent) -> PushOperation | None:
    """Translate a committed mutation into the push that mirrors it."""
    if not event.sync_relevant:
        return None

    kind = event.kind
    if kind in (MutationKind.PROGRAM_ADDED, MutationKind.PROGRAM_UPDATED):
        program = next((p for p in state.programs if p.id == event.entity_id), None)
        return PushOperation(kind, event.entity_id, program=program) if program else None
    if kind in (
        MutationKind.WORKOUT_LOG_ADDED,
        MutationKind.WORKOUT_LOG_UPDATED,
        MutationKind.WORKOUT_FINISHED,
    ):
        log = next((w for w in state.workout_logs if w.id == event.entity_id), None)
        return PushOperation(kind, event.entity_id, log=log) if log else None
    if kind is MutationKind.CHAT_MESSAGE_ADDED:
        message = next((m for m in state.chat_messages if m.id == event.entity_id), None)
        return PushOperation(kind, event.entity_id, message=message) if message else None
    return PushOperation(kind, event.entity_id)


class SyncOutbox:
    """Store listener that pushes sync-relevant mutations in commit order.

    Listening is synchronous (it only enqueues); a single background worker
    drains the queue. A failed push is logged and reported through
    ``on_error`` and is not retried.
    """

    def __init__(
        self,
        remote: RemoteSyncClient,
        on_error: Callable[[Exception], None] | None = None,
        on_success: Callable[[], None] | None = None,
    ):
        self.remote = remote
        self.on_error = on_error
        self.on_success = on_success
        self.queue: asyncio.Queue[PushOperation] = asyncio.Queue()
        self.failures = 0
        self._worker: asyncio.Task | None = None

    def __call__(self, state: StoreState, event: StoreEvent) -> None:
        operation = operation_for(state, event)
        if operation is not None:
            self.queue.put_nowait(operation)

    @property
    def pending(self) -> int:
        return self.queue.qsize()

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())

    async def flush(self) -> None:
        """Wait until every queued push has been attempted."""
        if self._worker is None or self._worker.done():
            self.start()
        await self.queue.join()

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _run(self) -> None:
        while True:
            operation = await self.queue.get()
            try:
                await operation.send(self.remote)
            except SyncTransportError as e:
                self.failures += 1
                logger.warning(
                    "push failed",
                    kind=operation.kind.value,
                    entity_id=operation.entity_id,
                    error=str(e),
                )
                if self.on_error is not None:
                    self.on_error(e)
            else:
                logger.debug("pushed", kind=operation.kind.value, entity_id=operation.entity_id)
                if self.on_success is not None and self.queue.qsize() == 0:
                    self.on_success()
            finally:
                self.queue.task_done()
