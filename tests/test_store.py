"""Tests for the local store."""

from dataclasses import replace

import pytest

from liftlog.errors import PersistenceError, ValidationError
from liftlog.models import ChatRole, ProgramGoal, WorkoutDay, WorkoutLog
from liftlog.store import LocalStore, MemoryBackend, MutationKind


class FlakyBackend(MemoryBackend):
    """Memory backend that can be told to fail its next saves."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def save(self, state):
        if self.fail:
            raise PersistenceError("disk full")
        super().save(state)


class TestPrograms:
    """Tests for program mutations."""

    def test_add_program_assigns_fresh_identity(self, store, clock, sample_program):
        """Test adding a program gives it a new id and the store's timestamps."""
        added = store.add_program(sample_program)

        assert added.id != sample_program.id
        assert added.created_at == clock.now
        assert added.updated_at == clock.now
        assert store.programs == [added]

    def test_add_program_from_dict(self, store):
        added = store.add_program({"name": "From dict", "goal": "strength", "id": "ignored"})

        assert added.id != "ignored"
        assert added.goal.value == "strength"

    def test_ids_stay_unique(self, store, sample_program):
        first = store.add_program(sample_program)
        second = store.add_program(sample_program)
        assert first.id != second.id
        assert len(store.programs) == 2

    def test_update_refreshes_updated_at(self, store, clock, sample_program):
        added = store.add_program(sample_program)
        clock.advance(minutes=5)

        updated = store.update_program(added.id, name="Test8 v2")

        assert updated.name == "Test8 v2"
        assert updated.created_at == added.created_at
        assert updated.updated_at == clock.now

    def test_update_unknown_program_is_noop(self, store):
        """Test updating an id nobody has changes nothing and saves nothing."""
        saves = store.backend.save_count
        assert store.update_program("missing", name="x") is None
        assert store.backend.save_count == saves

    def test_update_rejects_frozen_fields(self, store, sample_program):
        added = store.add_program(sample_program)
        with pytest.raises(ValidationError):
            store.update_program(added.id, id="other")

    def test_delete_active_program_clears_pointer(self, store, sample_program):
        added = store.add_program(sample_program)
        store.set_active_program(added)

        assert store.delete_program(added.id) is True
        assert store.active_program is None
        assert store.state.active_program_id is None
        assert store.delete_program(added.id) is False

    def test_only_one_active_program(self, store, sample_program):
        first = store.add_program(sample_program)
        second = store.add_program(sample_program)

        store.set_active_program(first)
        store.set_active_program(second.id)

        assert store.active_program.id == second.id

    def test_activate_unknown_program_keeps_current(self, store, sample_program):
        added = store.add_program(sample_program)
        store.set_active_program(added)

        store.set_active_program("missing")

        assert store.active_program.id == added.id


class TestWorkoutHistory:
    """Tests for workout log mutations."""

    def test_add_marks_completed(self, store, clock):
        log = store.add_workout_log(WorkoutLog(date=clock.now))
        assert log.completed is True
        assert store.workout_logs == [log]

    def test_duplicate_id_rejected(self, store, clock):
        log = store.add_workout_log(WorkoutLog(date=clock.now))
        with pytest.raises(ValidationError):
            store.add_workout_log(log)

    def test_update_and_delete(self, store, clock):
        log = store.add_workout_log(WorkoutLog(date=clock.now))

        updated = store.update_workout_log(log.id, notes="great session", rating=5)
        assert updated.notes == "great session"
        assert store.update_workout_log("missing", notes="x") is None

        assert store.delete_workout_log(log.id) is True
        assert store.workout_logs == []
        assert store.delete_workout_log(log.id) is False


class TestChat:
    """Tests for chat history mutations."""

    def test_first_message_starts_conversation(self, store):
        message = store.add_chat_message("user", "How heavy should I squat?")

        assert message.role is ChatRole.USER
        assert len(store.conversations) == 1
        assert store.chat_messages == [message]

    def test_clear_and_new_conversation(self, store):
        store.add_chat_message("user", "first")
        store.clear_chat_history()
        assert store.chat_messages == []

        old_id = store.state.active_conversation_id
        new = store.start_conversation("Deload week")
        store.add_chat_message("assistant", "Drop the volume by a third")

        assert store.state.active_conversation_id == new.id
        assert len(store.chat_messages) == 1

        store.set_active_conversation(old_id)
        assert store.chat_messages == []


class TestCommitPath:
    """Tests for listeners, durability and rollback."""

    def test_listeners_see_committed_state(self, store, sample_program):
        seen = []
        unsubscribe = store.subscribe(lambda state, event: seen.append((state, event)))

        added = store.add_program(sample_program)
        unsubscribe()
        store.delete_program(added.id)

        assert len(seen) == 1
        state, event = seen[0]
        assert event.kind is MutationKind.PROGRAM_ADDED
        assert event.entity_id == added.id
        assert event.sync_relevant
        assert state.programs[0].id == added.id

    def test_every_mutation_is_saved(self, store, sample_program):
        before = store.backend.save_count
        store.add_program(sample_program)
        assert store.backend.save_count == before + 1

    def test_failed_save_rolls_back(self, clock, sample_program):
        """Test a persistence failure leaves the in-memory state unchanged."""
        backend = FlakyBackend()
        store = LocalStore(backend, clock=clock)
        kept = store.add_program(sample_program)
        seen = []
        store.subscribe(lambda state, event: seen.append(event))

        backend.fail = True
        with pytest.raises(PersistenceError):
            store.add_program(sample_program)

        assert store.programs == [kept]
        assert seen == []

    def test_sqlite_state_survives_restart(self, temp_db_path, clock, sample_program):
        """Test everything written is there after reopening the database."""
        store = LocalStore.open(temp_db_path, clock=clock)
        program = store.add_program(sample_program)
        store.set_active_program(program)
        log = store.add_workout_log(WorkoutLog(date=clock.now, notes="legs"))
        store.put_current_workout(WorkoutLog(date=clock.now), started=True)
        store.add_chat_message("user", "hello")
        store.close()

        reopened = LocalStore.open(temp_db_path, clock=clock)
        try:
            assert reopened.programs == [program]
            assert reopened.active_program.id == program.id
            assert reopened.workout_logs == [log]
            assert reopened.current_workout is not None
            assert reopened.chat_messages[0].content == "hello"
        finally:
            reopened.close()

    def test_state_is_not_shared_after_load(self, sample_program):
        backend = MemoryBackend()
        store = LocalStore(backend)
        store.add_program(sample_program)

        reloaded = LocalStore(backend)
        assert reloaded.programs == store.programs
        assert reloaded.programs[0] is not store.programs[0]

    def test_unserializable_state_rolls_back(self, store, sample_program):
        """Test a value the backend cannot encode is rolled back, not kept."""
        kept = store.add_program(sample_program)
        saves = store.backend.save_count

        with pytest.raises(PersistenceError, match="serialize"):
            store.add_program(replace(sample_program, goal="strength"))

        assert store.programs == [kept]
        assert store.backend.save_count == saves
        assert store.update_program(kept.id, name="Still writable").name == "Still writable"

    def test_state_collections_are_read_only(self, store, sample_program):
        store.add_program(sample_program)

        with pytest.raises(AttributeError):
            store.state.programs.append(sample_program)
        assert isinstance(store.state.workout_logs, tuple)
        assert len(store.programs) == 1


class TestInputValidation:
    """Tests that rejected updates leave the store untouched and usable."""

    def test_goal_name_is_converted(self, store, sample_program):
        added = store.add_program(sample_program)
        updated = store.update_program(added.id, goal="strength")

        assert updated.goal is ProgramGoal.STRENGTH
        assert LocalStore(store.backend).programs == [updated]

    def test_day_dicts_are_converted(self, store, sample_program):
        added = store.add_program(sample_program)
        days = [{"name": "Full Body", "dayOfWeek": 3, "exercises": [{"exerciseName": "Squat"}]}]

        updated = store.update_program(added.id, workout_days=days)

        assert isinstance(updated.workout_days[0], WorkoutDay)
        assert updated.workout_days[0].exercises[0].exercise_name == "Squat"
        assert LocalStore(store.backend).programs == [updated]

    def test_add_program_with_nested_dicts(self, store):
        added = store.add_program({
            "name": "P",
            "workout_days": [{"name": "Day 1", "exercises": [{"exerciseName": "Row"}]}],
        })

        assert isinstance(added.workout_days[0], WorkoutDay)
        assert LocalStore(store.backend).programs == [added]

    @pytest.mark.parametrize(
        "changes",
        [
            {"goal": "yoga"},
            {"name": ""},
            {"workout_days": [{"dayOfWeek": 2}]},
            {"workout_days": [{"name": "Day", "dayOfWeek": 9}]},
            {"duration": "eight"},
            {"colour": "red"},
        ],
    )
    def test_bad_program_update_is_rejected(self, store, sample_program, changes):
        added = store.add_program(sample_program)
        before = store.state
        saves = store.backend.save_count

        with pytest.raises(ValidationError):
            store.update_program(added.id, **changes)

        assert store.state is before
        assert store.backend.save_count == saves
        assert store.update_program(added.id, name="Next").name == "Next"

    @pytest.mark.parametrize(
        "data",
        [
            {"description": "no name"},
            {"name": "P", "goal": "yoga"},
            {"name": "P", "colour": "red"},
        ],
    )
    def test_bad_program_dict_is_rejected(self, store, data):
        with pytest.raises(ValidationError):
            store.add_program(data)

        assert store.programs == []
        assert store.add_program({"name": "Fine"}).name == "Fine"

    def test_log_values_are_converted(self, store, clock):
        log = store.add_workout_log(WorkoutLog(date=clock.now))

        updated = store.update_workout_log(
            log.id,
            rating="4",
            date="2026-03-01T17:00:00Z",
            sets=[{"exerciseName": "Row", "actualReps": 8, "actualWeight": 100}],
        )

        assert updated.rating == 4
        assert updated.date.day == 1
        assert updated.volume == 800
        assert LocalStore(store.backend).workout_logs == [updated]

    @pytest.mark.parametrize(
        "changes",
        [
            {"rating": 9},
            {"rating": "great"},
            {"date": "not a date"},
            {"date": 12},
            {"sets": ["not a set"]},
            {"id": "new-id"},
        ],
    )
    def test_bad_log_update_is_rejected(self, store, clock, changes):
        log = store.add_workout_log(WorkoutLog(date=clock.now))
        before = store.state
        saves = store.backend.save_count

        with pytest.raises(ValidationError):
            store.update_workout_log(log.id, **changes)

        assert store.state is before
        assert store.backend.save_count == saves
        assert store.update_workout_log(log.id, notes="fine").notes == "fine"
