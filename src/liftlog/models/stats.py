"""Derived statistics models (computed, never stored)."""

from dataclasses import dataclass, field
from datetime import datetime

from ..utils import format_timestamp


@dataclass
class PersonalRecord:
    """Best performed set (by weight x reps) for one exercise."""

    exercise_id: str
    exercise_name: str
    weight: float
    reps: int
    date: datetime

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    def to_dict(self) -> dict:
        return {
            "exerciseId": self.exercise_id,
            "exerciseName": self.exercise_name,
            "weight": self.weight,
            "reps": self.reps,
            "date": format_timestamp(self.date),
        }


@dataclass
class UserStats:
    """Aggregate training statistics over the workout history."""

    total_workouts: int = 0
    total_volume: float = 0
    current_streak: int = 0
    longest_streak: int = 0
    weekly_workouts: int = 0
    personal_records: list[PersonalRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalWorkouts": self.total_workouts,
            "totalVolume": self.total_volume,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "weeklyWorkouts": self.weekly_workouts,
            "personalRecords": [pr.to_dict() for pr in self.personal_records],
        }
