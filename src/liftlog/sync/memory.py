"""In-process remote used by tests and offline demos."""

import asyncio
from typing import Awaitable, Callable

from ..errors import SyncTransportError
from ..models import ChatMessage, Program, WorkoutLog
from .base import SyncSnapshot


class InMemoryRemote:
    """A RemoteSyncClient that keeps one device's documents in memory.

    Documents are stored serialized so nothing is shared with the caller's
    objects, just as with a real server. Set ``available`` to False to
    simulate an unreachable remote and ``fail_with`` to make every call
    raise. ``before_fetch_returns`` runs while ``fetch_all`` is suspended,
    which lets a test mutate the local store with a fetch in flight.
    """

    def __init__(self, snapshot: SyncSnapshot | None = None):
        self.available = True
        self.fail_with: str | None = None
        self.before_fetch_returns: Callable[[], Awaitable[None] | None] | None = None
        self.calls: list[str] = []
        self._programs: dict[str, dict] = {}
        self._active_program_id: str | None = None
        self._workouts: dict[str, dict] = {}
        self._chat: dict[str, dict] = {}
        if snapshot is not None:
            self.load(snapshot)

    def load(self, snapshot: SyncSnapshot) -> None:
        """Replace the stored documents (test setup)."""
        self._programs = {p.id: p.to_dict() for p in snapshot.programs}
        self._active_program_id = snapshot.active_program_id
        self._workouts = {w.id: w.to_dict() for w in snapshot.workout_logs}
        self._chat = {m.id: m.to_dict() for m in snapshot.chat_messages}

    def snapshot(self) -> SyncSnapshot:
        """Current documents, without recording a call."""
        return SyncSnapshot(
            programs=[Program.from_dict(p) for p in self._programs.values()],
            active_program_id=self._active_program_id,
            workout_logs=[WorkoutLog.from_dict(w) for w in self._workouts.values()],
            chat_messages=[ChatMessage.from_dict(m) for m in self._chat.values()],
        )

    async def _enter(self, call: str) -> None:
        self.calls.append(call)
        # Yield like a real network round trip would
        await asyncio.sleep(0)
        if not self.available:
            raise SyncTransportError(f"{call}: remote unavailable")
        if self.fail_with:
            raise SyncTransportError(f"{call}: {self.fail_with}")

    async def is_available(self) -> bool:
        self.calls.append("is_available")
        return self.available

    async def fetch_all(self) -> SyncSnapshot:
        await self._enter("fetch_all")
        result = self.snapshot()
        if self.before_fetch_returns is not None:
            pending = self.before_fetch_returns()
            if pending is not None:
                await pending
        return result

    async def push_all(self, snapshot: SyncSnapshot) -> None:
        await self._enter("push_all")
        for program in snapshot.programs:
            self._programs[program.id] = program.to_dict()
        for log in snapshot.workout_logs:
            self._workouts[log.id] = log.to_dict()
        for message in snapshot.chat_messages:
            self._chat[message.id] = message.to_dict()
        if snapshot.active_program_id in self._programs:
            self._active_program_id = snapshot.active_program_id

    async def upsert_program(self, program: Program) -> None:
        await self._enter("upsert_program")
        self._programs[program.id] = program.to_dict()

    async def delete_program(self, program_id: str) -> None:
        await self._enter("delete_program")
        if self._programs.pop(program_id, None) is None:
            raise SyncTransportError(f"delete_program: program {program_id} not found")
        if self._active_program_id == program_id:
            self._active_program_id = None

    async def set_active_program(self, program_id: str | None) -> None:
        await self._enter("set_active_program")
        self._active_program_id = program_id if program_id in self._programs else None

    async def upsert_workout(self, log: WorkoutLog) -> None:
        await self._enter("upsert_workout")
        self._workouts[log.id] = log.to_dict()

    async def delete_workout(self, log_id: str) -> None:
        await self._enter("delete_workout")
        if self._workouts.pop(log_id, None) is None:
            raise SyncTransportError(f"delete_workout: workout {log_id} not found")

    async def push_chat_message(self, message: ChatMessage) -> None:
        await self._enter("push_chat_message")
        self._chat[message.id] = message.to_dict()

    async def clear_chat(self) -> None:
        await self._enter("clear_chat")
        self._chat.clear()

    async def close(self) -> None:
        pass
