"""Last-writer-wins merge of local and remote collections."""

from datetime import datetime
from typing import Callable, Iterable, Protocol, TypeVar

from ..models import ChatMessage, Program, WorkoutLog
from .base import SyncSnapshot


class _Identified(Protocol):
    id: str


T = TypeVar("T", bound=_Identified)


def merge_by_recency(
    local: Iterable[T],
    remote: Iterable[T],
    recency: Callable[[T], datetime],
) -> list[T]:
    """Merge two collections keyed by id.

    The result follows the remote order, with local-only entities appended
    in local order. When both sides hold an id, the copy with the strictly
    greater recency value wins; on a tie the remote copy is kept.

    Examples:
        >>> from types import SimpleNamespace as E
        >>> r = [E(id="a", t=1), E(id="b", t=5)]
        >>> l = [E(id="b", t=7), E(id="c", t=2)]
        >>> [(e.id, e.t) for e in merge_by_recency(l, r, lambda e: e.t)]
        [('a', 1), ('b', 7), ('c', 2)]
    """
    merged: dict[str, T] = {entity.id: entity for entity in remote}
    for entity in local:
        existing = merged.get(entity.id)
        if existing is None or recency(entity) > recency(existing):
            merged[entity.id] = entity
    return list(merged.values())


def merge_chat(local: Iterable[ChatMessage], remote: Iterable[ChatMessage]) -> list[ChatMessage]:
    """Union messages by id, ordered by timestamp."""
    by_id = {m.id: m for m in remote}
    for message in local:
        by_id.setdefault(message.id, message)
    return sorted(by_id.values(), key=lambda m: m.timestamp)


def _program_recency(program: Program) -> datetime:
    return program.updated_at


def _log_recency(log: WorkoutLog) -> datetime:
    return log.date


def merge_snapshots(local: SyncSnapshot, remote: SyncSnapshot) -> SyncSnapshot:
    """Merge both snapshots collection by collection."""
    programs = merge_by_recency(local.programs, remote.programs, _program_recency)
    program_ids = {p.id for p in programs}

    if remote.active_program_id in program_ids:
        active_program_id = remote.active_program_id
    elif local.active_program_id in program_ids:
        active_program_id = local.active_program_id
    else:
        active_program_id = None

    return SyncSnapshot(
        programs=programs,
        active_program_id=active_program_id,
        workout_logs=merge_by_recency(local.workout_logs, remote.workout_logs, _log_recency),
        chat_messages=merge_chat(local.chat_messages, remote.chat_messages),
    )
