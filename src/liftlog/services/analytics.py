"""Read-only statistics derived from workout history."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from ..models import PersonalRecord, UserStats, WorkoutLog
from ..utils import utcnow

# Consecutive training days may be at most this many days apart
STREAK_MAX_GAP_DAYS = 2
WEEK = timedelta(days=7)


def _training_days(logs: Iterable[WorkoutLog]) -> list[date]:
    """Distinct UTC calendar days with a completed workout, most recent first."""
    days = {log.date.astimezone(timezone.utc).date() for log in logs if log.completed}
    return sorted(days, reverse=True)


def compute_streaks(logs: Iterable[WorkoutLog]) -> tuple[int, int]:
    """Return ``(current, longest)`` streak lengths in training days.

    Days are scanned most-recent-first; a gap of more than two days between
    consecutive training days ends a run. The current streak is the run that
    contains the most recent workout.
    """
    days = _training_days(logs)
    if not days:
        return 0, 0

    runs = [1]
    for previous, day in zip(days, days[1:]):
        if (previous - day).days <= STREAK_MAX_GAP_DAYS:
            runs[-1] += 1
        else:
            runs.append(1)
    return runs[0], max(runs)


def total_volume(logs: Iterable[WorkoutLog]) -> float:
    """Sum of weight x reps over every set; missing actuals count as zero."""
    return sum(log.volume for log in logs)


def weekly_workout_count(logs: Iterable[WorkoutLog], now: datetime | None = None) -> int:
    """Completed workouts dated within the trailing seven days."""
    since = (now or utcnow()) - WEEK
    return sum(1 for log in logs if log.completed and log.date >= since)


def personal_records(logs: Iterable[WorkoutLog]) -> list[PersonalRecord]:
    """Best completed set per exercise name, by weight x reps.

    Only sets with positive actual weight and reps qualify. A later set must
    be strictly better to replace the record, so ties keep the first one
    encountered in history order.
    """
    records: dict[str, PersonalRecord] = {}
    for log in logs:
        for s in log.sets:
            if not (s.completed and s.actual_weight and s.actual_reps):
                continue
            existing = records.get(s.exercise_name)
            if existing is None or s.volume > existing.volume:
                records[s.exercise_name] = PersonalRecord(
                    exercise_id=s.exercise_id,
                    exercise_name=s.exercise_name,
                    weight=s.actual_weight,
                    reps=s.actual_reps,
                    date=log.date,
                )
    return list(records.values())


def compute_stats(logs: list[WorkoutLog], now: datetime | None = None) -> UserStats:
    """All dashboard statistics in one pass over the history."""
    current, longest = compute_streaks(logs)
    return UserStats(
        total_workouts=sum(1 for log in logs if log.completed),
        total_volume=total_volume(logs),
        current_streak=current,
        longest_streak=longest,
        weekly_workouts=weekly_workout_count(logs, now),
        personal_records=personal_records(logs),
    )
