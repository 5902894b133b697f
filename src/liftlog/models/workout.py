"""Workout log model."""

from dataclasses import dataclass, field
from datetime import datetime

from ..errors import ValidationError
from ..utils import format_timestamp, new_id, parse_timestamp, utcnow
from .program import WorkoutSet


@dataclass
class WorkoutLog:
    """One concrete, dated training session.

    A log with ``completed = False`` is the in-progress current workout. Once
    finished it becomes history.
    """

    program_id: str | None = None
    workout_day_id: str | None = None
    date: datetime = field(default_factory=utcnow)  # session start
    duration: int = 0  # minutes
    sets: list[WorkoutSet] = field(default_factory=list)
    notes: str | None = None
    rating: int | None = None
    completed: bool = False
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if self.rating is not None and not 1 <= self.rating <= 5:
            raise ValidationError(f"rating must be between 1 and 5, got {self.rating}")

    def find_set(self, set_id: str) -> WorkoutSet | None:
        """Look up one of this log's sets by id."""
        for s in self.sets:
            if s.id == set_id:
                return s
        return None

    @property
    def completed_sets(self) -> list[WorkoutSet]:
        """Sets marked completed."""
        return [s for s in self.sets if s.completed]

    @property
    def volume(self) -> float:
        """Total volume (weight x reps) across all sets."""
        return sum(s.volume for s in self.sets)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and transfer."""
        data = {
            "id": self.id,
            "date": format_timestamp(self.date),
            "duration": self.duration,
            "sets": [s.to_dict() for s in self.sets],
            "completed": self.completed,
        }
        optional = {
            "programId": self.program_id,
            "workoutDayId": self.workout_day_id,
            "notes": self.notes,
            "rating": self.rating,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutLog":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            program_id=data.get("programId"),
            workout_day_id=data.get("workoutDayId"),
            date=parse_timestamp(data["date"]) if data.get("date") else utcnow(),
            duration=int(data.get("duration") or 0),
            sets=[WorkoutSet.from_dict(s) for s in data.get("sets") or []],
            notes=data.get("notes"),
            # The original client stored 0 for "not rated"
            rating=data.get("rating") or None,
            completed=bool(data.get("completed", False)),
        )
