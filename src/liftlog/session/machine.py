"""State machine for the in-progress workout.

States::

    IDLE --start--> ACTIVE --finish--> (history) --> IDLE
                      |
                      +----cancel---> (discarded) --> IDLE

The working copy lives in the local store as ``current_workout`` so it
survives a restart; this class only enforces which operations are allowed
and how each one transforms that copy.
"""

from dataclasses import replace
from enum import Enum
from typing import Any, Iterable

from ..errors import (
    InvalidTransitionError,
    SetNotFoundError,
    ValidationError,
    WorkoutInProgressError,
)
from ..log import get_logger
from ..models import Program, WorkoutLog, WorkoutSet
from ..store import LocalStore, StoreEvent, StoreState
from .timers import SessionTimers, parse_rest_duration

logger = get_logger(__name__)

# Fields of the current workout that only the state machine itself may set
_GUARDED_FIELDS = {"id", "completed"}


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class SessionOutcome(str, Enum):
    """How the last session ended."""

    FINISHED = "finished"
    CANCELLED = "cancelled"


class WorkoutSession:
    """Drives the single current workout held by a LocalStore."""

    def __init__(self, store: LocalStore, timers: SessionTimers | None = None):
        self.store = store
        self.timers = timers or SessionTimers(clock=store.clock)
        self.last_outcome: SessionOutcome | None = None
        self._unsubscribe = store.subscribe(self._on_commit)
        if store.current_workout is not None:
            # Resumed after a restart: timers are never persisted
            self.timers.start_elapsed(store.current_workout.date)

    def close(self) -> None:
        """Detach from the store and stop all timers."""
        self._unsubscribe()
        self.timers.stop()

    @property
    def state(self) -> SessionState:
        return SessionState.ACTIVE if self.store.current_workout else SessionState.IDLE

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def current(self) -> WorkoutLog | None:
        return self.store.current_workout

    def require_active(self, operation: str) -> WorkoutLog:
        current = self.store.current_workout
        if current is None:
            raise InvalidTransitionError(f"Cannot {operation}: no workout in progress")
        return current

    def _on_commit(self, state: StoreState, event: StoreEvent) -> None:
        # Covers finish, cancel, restore and pull alike
        if state.current_workout is None:
            self.timers.stop()

    # Transitions

    def start_workout(
        self,
        program_id: str | None = None,
        workout_day_id: str | None = None,
        prescribed_sets: Iterable[WorkoutSet] = (),
        replace_current: bool = False,
    ) -> WorkoutLog:
        """Start a new workout from IDLE.

        Every prescribed set is copied with a fresh id and ``completed=False``.

        Raises:
            WorkoutInProgressError: if a workout is already active and
                ``replace_current`` is not set
        """
        existing = self.store.current_workout
        if existing is not None:
            if not replace_current:
                raise WorkoutInProgressError(
                    "A workout is already in progress; finish or cancel it first"
                )
            logger.info("replacing in-progress workout", workout_id=existing.id)

        workout = WorkoutLog(
            program_id=program_id,
            workout_day_id=workout_day_id,
            date=self.store.clock(),
            sets=[s.clone_for_log() for s in prescribed_sets],
            completed=False,
        )
        self.store.put_current_workout(workout, started=True)
        self.last_outcome = None
        self.timers.stop_rest()
        self.timers.start_elapsed(workout.date)
        logger.info("workout started", workout_id=workout.id, sets=len(workout.sets))
        return workout

    def start_workout_from_program(
        self, program: Program, workout_day_id: str | None = None, replace_current: bool = False
    ) -> WorkoutLog:
        """Start a workout prescribed by one of a program's days.

        Without a day id the workout starts empty but still references the
        program.
        """
        sets: list[WorkoutSet] = []
        if workout_day_id is not None:
            day = program.find_day(workout_day_id)
            if day is None:
                raise ValidationError(
                    f"Program {program.name!r} has no day with id {workout_day_id}"
                )
            sets = day.exercises
        return self.start_workout(program.id, workout_day_id, sets, replace_current)

    def update_current_workout(self, **changes: Any) -> WorkoutLog:
        """Shallow-merge changes into the current workout."""
        current = self.require_active("update workout")
        guarded = _GUARDED_FIELDS & set(changes)
        if guarded:
            raise ValidationError(
                f"Cannot change {', '.join(sorted(guarded))} of the current workout"
            )
        try:
            updated = replace(current, **changes)
        except TypeError as e:
            raise ValidationError(str(e)) from e
        self.store.put_current_workout(updated)
        return updated

    def add_set(self, workout_set: WorkoutSet | None = None, **fields: Any) -> WorkoutSet:
        """Append an ad-hoc set to the current workout."""
        current = self.require_active("add set")
        new_set = workout_set or WorkoutSet(**{"exercise_name": "", **fields})
        self.update_current_workout(sets=[*current.sets, new_set])
        return new_set

    def update_set(self, set_id: str, **changes: Any) -> WorkoutSet:
        """Edit one set of the current workout (targets, names, actuals)."""
        current = self.require_active("update set")
        target = current.find_set(set_id)
        if target is None:
            raise SetNotFoundError(set_id)
        if "id" in changes:
            raise ValidationError("Cannot change a set's id")
        updated = replace(target, **changes)
        self.update_current_workout(
            sets=[updated if s.id == set_id else s for s in current.sets]
        )
        return updated

    def remove_set(self, set_id: str) -> None:
        current = self.require_active("remove set")
        if current.find_set(set_id) is None:
            raise SetNotFoundError(set_id)
        self.update_current_workout(sets=[s for s in current.sets if s.id != set_id])

    def complete_set(
        self,
        set_id: str,
        actual_reps: int,
        actual_weight: float,
        rpe: float | None = None,
    ) -> WorkoutSet:
        """Mark one set completed and record what was actually done.

        Actuals are not compared against targets; any non-negative values
        are accepted. A parseable rest prescription on the set starts the
        rest timer.
        """
        current = self.require_active("complete set")
        target = current.find_set(set_id)
        if target is None:
            raise SetNotFoundError(set_id)
        if actual_reps < 0 or actual_weight < 0:
            raise ValidationError("Actual reps and weight must be non-negative")

        done = replace(
            target,
            actual_reps=actual_reps,
            actual_weight=actual_weight,
            rpe=rpe,
            completed=True,
        )
        self.store.put_current_workout(
            replace(current, sets=[done if s.id == set_id else s for s in current.sets])
        )

        rest = parse_rest_duration(done.rest)
        if rest > 0:
            self.timers.start_rest(rest)
        return done

    def uncomplete_set(self, set_id: str) -> WorkoutSet:
        """Clear a set's completed flag, keeping the recorded actuals."""
        current = self.require_active("uncomplete set")
        target = current.find_set(set_id)
        if target is None:
            raise SetNotFoundError(set_id)
        undone = replace(target, completed=False)
        self.store.put_current_workout(
            replace(current, sets=[undone if s.id == set_id else s for s in current.sets])
        )
        return undone

    def finish_workout(self, notes: str | None = None, rating: int | None = None) -> WorkoutLog:
        """Finish the current workout and append it to history."""
        current = self.require_active("finish workout")
        elapsed = self.store.clock() - current.date
        finished = replace(
            current,
            notes=notes,
            rating=rating,  # validated by WorkoutLog
            completed=True,
            duration=max(round(elapsed.total_seconds() / 60), 0),
        )
        self.store.commit_finished_workout(finished)
        self.last_outcome = SessionOutcome.FINISHED
        logger.info(
            "workout finished",
            workout_id=finished.id,
            duration=finished.duration,
            completed_sets=len(finished.completed_sets),
        )
        return finished

    def cancel_workout(self) -> None:
        """Discard the current workout without recording anything."""
        current = self.require_active("cancel workout")
        self.store.discard_current_workout()
        self.last_outcome = SessionOutcome.CANCELLED
        logger.info("workout cancelled", workout_id=current.id)
