"""Protocol for the remote sync collaborator."""

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ..models import ChatMessage, Program, WorkoutLog


@dataclass
class SyncSnapshot:
    """The synchronized collections, as one value."""

    programs: list[Program] = field(default_factory=list)
    active_program_id: str | None = None
    workout_logs: list[WorkoutLog] = field(default_factory=list)
    chat_messages: list[ChatMessage] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        """Whether there is anything worth reconciling.

        Chat alone does not count; only programs and history decide which
        side wins on first contact.
        """
        return bool(self.programs or self.workout_logs)

    @classmethod
    def from_wire(cls, data: dict) -> "SyncSnapshot":
        """Parse the ``GET /api/sync/all`` response body."""
        programs = [Program.from_dict(p) for p in data.get("programs") or []]
        active = data.get("activeProgram")
        return cls(
            programs=programs,
            active_program_id=active.get("id") if isinstance(active, dict) else None,
            workout_logs=[WorkoutLog.from_dict(w) for w in data.get("workouts") or []],
            chat_messages=[ChatMessage.from_dict(m) for m in data.get("chatMessages") or []],
        )

    def to_wire(self) -> dict:
        """Build the ``POST /api/sync/all`` request body."""
        active = next((p for p in self.programs if p.id == self.active_program_id), None)
        return {
            "programs": [p.to_dict() for p in self.programs],
            "workouts": [w.to_dict() for w in self.workout_logs],
            "activeProgram": active.to_dict() if active else None,
            "chatMessages": [m.to_dict() for m in self.chat_messages],
        }


@runtime_checkable
class RemoteSyncClient(Protocol):
    """Protocol for a remote that mirrors one device's data.

    Every method except ``is_available`` raises SyncTransportError when the
    remote cannot be reached or rejects the request.
    """

    async def is_available(self) -> bool:
        """Return whether the remote's storage is reachable. Never raises."""
        ...

    async def fetch_all(self) -> SyncSnapshot:
        ...

    async def push_all(self, snapshot: SyncSnapshot) -> None:
        """Upsert every document in the snapshot and set its active program."""
        ...

    async def upsert_program(self, program: Program) -> None:
        ...

    async def delete_program(self, program_id: str) -> None:
        ...

    async def set_active_program(self, program_id: str | None) -> None:
        ...

    async def upsert_workout(self, log: WorkoutLog) -> None:
        ...

    async def delete_workout(self, log_id: str) -> None:
        ...

    async def push_chat_message(self, message: ChatMessage) -> None:
        ...

    async def clear_chat(self) -> None:
        ...

    async def close(self) -> None:
        ...
