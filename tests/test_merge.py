"""Tests for last-writer-wins merging."""

from datetime import datetime, timedelta, timezone

from liftlog.models import ChatMessage, ChatRole, Program, WorkoutLog
from liftlog.sync import SyncSnapshot, merge_by_recency, merge_chat, merge_snapshots

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def program(program_id, name, minutes=0):
    return Program(
        id=program_id,
        name=name,
        created_at=T0,
        updated_at=T0 + timedelta(minutes=minutes),
    )


class TestMergeByRecency:
    """Tests for merge_by_recency."""

    def test_newer_local_wins(self):
        merged = merge_by_recency(
            [program("p1", "local", minutes=5)],
            [program("p1", "remote", minutes=1)],
            lambda p: p.updated_at,
        )
        assert [p.name for p in merged] == ["local"]

    def test_newer_remote_wins(self):
        merged = merge_by_recency(
            [program("p1", "local", minutes=1)],
            [program("p1", "remote", minutes=5)],
            lambda p: p.updated_at,
        )
        assert [p.name for p in merged] == ["remote"]

    def test_tie_keeps_remote(self):
        merged = merge_by_recency(
            [program("p1", "local")], [program("p1", "remote")], lambda p: p.updated_at
        )
        assert [p.name for p in merged] == ["remote"]

    def test_union_order(self):
        """Test remote order first, then local-only entities in local order."""
        merged = merge_by_recency(
            [program("c", "C"), program("b", "B local", minutes=3), program("d", "D")],
            [program("a", "A"), program("b", "B remote")],
            lambda p: p.updated_at,
        )
        assert [p.name for p in merged] == ["A", "B local", "C", "D"]

    def test_empty_sides(self):
        only = [program("a", "A")]
        assert merge_by_recency([], only, lambda p: p.updated_at) == only
        assert merge_by_recency(only, [], lambda p: p.updated_at) == only


class TestMergeChat:
    """Tests for merge_chat."""

    def test_union_sorted_by_timestamp(self):
        shared = ChatMessage(
            id="m2", role=ChatRole.ASSISTANT, content="b", timestamp=T0 + timedelta(minutes=2)
        )
        local = [
            ChatMessage(id="m1", role=ChatRole.USER, content="a", timestamp=T0),
            shared,
        ]
        remote = [
            shared,
            ChatMessage(
                id="m3", role=ChatRole.USER, content="c", timestamp=T0 + timedelta(minutes=1)
            ),
        ]
        assert [m.id for m in merge_chat(local, remote)] == ["m1", "m3", "m2"]


class TestMergeSnapshots:
    """Tests for merge_snapshots."""

    def test_logs_merge_by_date(self):
        old = WorkoutLog(id="w1", date=T0, notes="old")
        new = WorkoutLog(id="w1", date=T0 + timedelta(hours=1), notes="new")
        merged = merge_snapshots(
            SyncSnapshot(workout_logs=[new]), SyncSnapshot(workout_logs=[old])
        )
        assert [log.notes for log in merged.workout_logs] == ["new"]

    def test_remote_active_program_preferred(self):
        local = SyncSnapshot(programs=[program("p1", "A")], active_program_id="p1")
        remote = SyncSnapshot(programs=[program("p2", "B")], active_program_id="p2")
        assert merge_snapshots(local, remote).active_program_id == "p2"

    def test_falls_back_to_local_active_program(self):
        local = SyncSnapshot(programs=[program("p1", "A")], active_program_id="p1")
        remote = SyncSnapshot(programs=[program("p2", "B")], active_program_id="gone")
        assert merge_snapshots(local, remote).active_program_id == "p1"

    def test_no_active_program(self):
        merged = merge_snapshots(
            SyncSnapshot(programs=[program("p1", "A")]), SyncSnapshot(active_program_id="gone")
        )
        assert merged.active_program_id is None
