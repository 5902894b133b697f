"""Backup/restore document format.

A backup is a JSON document::

    {
      "version": 2,
      "exportedAt": "2026-01-05T18:30:00+00:00",
      "programs": [...],
      "activeProgram": {...} | null,
      "workoutLogs": [...],
      "chatMessages": [...],          # active conversation, as in version 1
      "conversations": [...],         # version 2 and later
      "activeConversationId": "..."   # version 2 and later
    }

Only ``programs`` and ``workoutLogs`` are required on import.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import SnapshotError
from ..models import ChatMessage, Conversation, Program, WorkoutLog
from ..utils import format_timestamp
from .state import StoreState

EXPORT_VERSION = 2


@dataclass
class ImportedSnapshot:
    """Fully parsed contents of a backup document."""

    programs: list[Program]
    workout_logs: list[WorkoutLog]
    active_program_id: str | None = None
    conversations: list[Conversation] = field(default_factory=list)
    active_conversation_id: str | None = None
    version: int | None = None


def export_snapshot(state: StoreState, exported_at: datetime) -> str:
    """Serialize the visible state to a backup document."""
    active = state.active_program
    document = {
        "version": EXPORT_VERSION,
        "exportedAt": format_timestamp(exported_at),
        "programs": [p.to_dict() for p in state.programs],
        "activeProgram": active.to_dict() if active else None,
        "workoutLogs": [log.to_dict() for log in state.workout_logs],
        "chatMessages": [m.to_dict() for m in state.chat_messages],
        "conversations": [c.to_dict() for c in state.conversations],
        "activeConversationId": state.active_conversation_id,
    }
    return json.dumps(document, indent=2)


def parse_snapshot(blob: str | bytes | dict) -> ImportedSnapshot:
    """Parse and validate a backup document.

    Every entity is parsed before anything is returned, so a document that
    fails part-way through never yields a partial result.

    Raises:
        SnapshotError: if the document is malformed
    """
    if isinstance(blob, (str, bytes)):
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Backup is not valid JSON: {e}") from e
    else:
        data = blob

    if not isinstance(data, dict):
        raise SnapshotError("Backup must be a JSON object")
    if not isinstance(data.get("programs"), list):
        raise SnapshotError("Backup has no programs collection")
    if not isinstance(data.get("workoutLogs"), list):
        raise SnapshotError("Backup has no workoutLogs collection")

    version = data.get("version")
    if version is not None:
        if not isinstance(version, int) or isinstance(version, bool):
            raise SnapshotError(f"Invalid backup version: {version!r}")
        if version > EXPORT_VERSION:
            raise SnapshotError(
                f"Backup version {version} is newer than supported ({EXPORT_VERSION})"
            )

    try:
        programs = [Program.from_dict(p) for p in data["programs"]]
        logs = [WorkoutLog.from_dict(log) for log in data["workoutLogs"]]
        conversations, active_conversation_id = _parse_chat(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SnapshotError(f"Backup contains an invalid entity: {e}") from e

    _ensure_unique("program", [p.id for p in programs])
    _ensure_unique("workout log", [log.id for log in logs])

    active_program_id = None
    active = data.get("activeProgram")
    if isinstance(active, dict) and active.get("id") in {p.id for p in programs}:
        active_program_id = active["id"]

    return ImportedSnapshot(
        programs=programs,
        workout_logs=logs,
        active_program_id=active_program_id,
        conversations=conversations,
        active_conversation_id=active_conversation_id,
        version=version,
    )


def _parse_chat(data: dict) -> tuple[list[Conversation], str | None]:
    raw_conversations = data.get("conversations")
    if isinstance(raw_conversations, list):
        conversations = [Conversation.from_dict(c) for c in raw_conversations]
        active_id = data.get("activeConversationId")
        if active_id not in {c.id for c in conversations}:
            active_id = conversations[-1].id if conversations else None
        return conversations, active_id

    # Version 1 documents only carry a flat message list
    messages = [ChatMessage.from_dict(m) for m in data.get("chatMessages") or []]
    if not messages:
        return [], None
    conversation = Conversation(
        messages=messages,
        created_at=messages[0].timestamp,
        updated_at=messages[-1].timestamp,
    )
    return [conversation], conversation.id


def _ensure_unique(kind: str, ids: list[str]) -> None:
    seen: set[str] = set()
    for entity_id in ids:
        if entity_id in seen:
            raise SnapshotError(f"Backup contains duplicate {kind} id {entity_id}")
        seen.add(entity_id)
