"""Pytest configuration and fixtures."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from liftlog.models import Program, ProgramGoal, WorkoutDay, WorkoutLog, WorkoutSet
from liftlog.store import LocalStore, MemoryBackend


class FakeClock:
    """A controllable replacement for utcnow()."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    """An in-memory store driven by the fake clock."""
    return LocalStore(MemoryBackend(), clock=clock)


@pytest.fixture
def sample_program():
    """A two-day program with rest prescriptions."""
    return Program(
        name="Test8",
        description="8-week hypertrophy",
        duration=8,
        days_per_week=4,
        goal=ProgramGoal.HYPERTROPHY,
        workout_days=[
            WorkoutDay(
                name="Upper A",
                day_of_week=1,
                exercises=[
                    WorkoutSet(
                        exercise_name="Bench Press",
                        set_number=1,
                        target_reps=10,
                        target_weight=135,
                        tempo="31X1",
                        intensity="2 RIR",
                        rest="90 sec",
                    ),
                    WorkoutSet(
                        exercise_name="Bench Press",
                        set_number=2,
                        target_reps=10,
                        target_weight=135,
                        rest="90 sec",
                    ),
                    WorkoutSet(
                        exercise_name="Barbell Rows",
                        set_number=1,
                        target_reps=8,
                        target_weight=115,
                        rest="2-3 min",
                    ),
                ],
            ),
            WorkoutDay(
                name="Lower A",
                day_of_week=2,
                exercises=[
                    WorkoutSet(exercise_name="Squat", target_reps=5, target_weight=225),
                ],
            ),
        ],
    )


def _make_log(
    date: datetime,
    performed: list[tuple[str, int, float]] = (),
    completed: bool = True,
) -> WorkoutLog:
    """Build a finished log from (exercise, reps, weight) tuples."""
    return WorkoutLog(
        date=date,
        completed=completed,
        sets=[
            WorkoutSet(
                exercise_name=name,
                set_number=i,
                actual_reps=reps,
                actual_weight=weight,
                completed=True,
            )
            for i, (name, reps, weight) in enumerate(performed, start=1)
        ],
    )


@pytest.fixture
def make_log():
    return _make_log
