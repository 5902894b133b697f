"""Training program data models."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from ..errors import ValidationError
from ..utils import format_timestamp, new_id, parse_timestamp, utcnow


class ProgramGoal(str, Enum):
    """Training goal a program is built around."""

    STRENGTH = "strength"
    HYPERTROPHY = "hypertrophy"
    POWERLIFTING = "powerlifting"
    BODYBUILDING = "bodybuilding"
    CROSSFIT = "crossfit"
    HYBRID = "hybrid"
    GENERAL = "general"


@dataclass
class WorkoutSet:
    """A single set, either prescribed (under a day) or performed (under a log).

    Prescribed sets only carry targets and coaching annotations. Performed
    sets additionally record actuals and the completed flag.
    """

    exercise_name: str
    set_number: int = 1
    target_reps: int = 10
    target_weight: float = 0
    reps: str | None = None  # richer prescription, e.g. "6-8"
    tempo: str | None = None  # e.g. "31X1"
    intensity: str | None = None  # e.g. "2 RIR", "85%"
    rest: str | None = None  # e.g. "2-3 min", "90 sec"
    notes: str | None = None
    actual_reps: int | None = None
    actual_weight: float | None = None
    rpe: float | None = None
    completed: bool = False
    exercise_id: str = field(default_factory=new_id)
    id: str = field(default_factory=new_id)

    @property
    def is_performed(self) -> bool:
        """Whether any actuals have been recorded for this set."""
        return self.completed or self.actual_reps is not None or self.actual_weight is not None

    @property
    def volume(self) -> float:
        """Actual weight x actual reps, with missing actuals counted as zero."""
        return (self.actual_weight or 0) * (self.actual_reps or 0)

    def clone_for_log(self) -> "WorkoutSet":
        """Copy a prescribed set into a fresh, not yet completed performed set."""
        return replace(self, id=new_id(), completed=False)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = {
            "id": self.id,
            "exerciseId": self.exercise_id,
            "exerciseName": self.exercise_name,
            "setNumber": self.set_number,
            "targetReps": self.target_reps,
            "targetWeight": self.target_weight,
            "completed": self.completed,
        }
        optional = {
            "reps": self.reps,
            "tempo": self.tempo,
            "intensity": self.intensity,
            "rest": self.rest,
            "notes": self.notes,
            "actualReps": self.actual_reps,
            "actualWeight": self.actual_weight,
            "rpe": self.rpe,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutSet":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            exercise_id=data.get("exerciseId") or new_id(),
            exercise_name=data.get("exerciseName", ""),
            set_number=int(data.get("setNumber") or data.get("sets") or 1),
            target_reps=int(data.get("targetReps") or 0),
            target_weight=data.get("targetWeight") or 0,
            reps=data.get("reps") or None,
            tempo=data.get("tempo") or None,
            intensity=data.get("intensity") or None,
            rest=data.get("rest") or None,
            notes=data.get("notes") or None,
            actual_reps=data.get("actualReps"),
            actual_weight=data.get("actualWeight"),
            rpe=data.get("rpe"),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class WorkoutDay:
    """One named training day within a program."""

    name: str
    day_of_week: int = 0  # 0 = Sunday
    exercises: list[WorkoutSet] = field(default_factory=list)
    notes: str | None = None
    week_number: int | None = None
    day_number: int | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ValidationError(
                f"day_of_week must be between 0 and 6, got {self.day_of_week}"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = {
            "id": self.id,
            "name": self.name,
            "dayOfWeek": self.day_of_week,
            "exercises": [s.to_dict() for s in self.exercises],
        }
        if self.notes is not None:
            data["notes"] = self.notes
        if self.week_number is not None:
            data["weekNumber"] = self.week_number
        if self.day_number is not None:
            data["dayNumber"] = self.day_number
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutDay":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_id(),
            name=data["name"],
            day_of_week=int(data.get("dayOfWeek") or 0),
            exercises=[WorkoutSet.from_dict(s) for s in data.get("exercises") or []],
            notes=data.get("notes"),
            week_number=data.get("weekNumber"),
            day_number=data.get("dayNumber"),
        )


@dataclass
class Program:
    """A multi-week template of workout days."""

    name: str
    description: str = ""
    duration: int = 8  # weeks
    days_per_week: int = 4
    goal: ProgramGoal = ProgramGoal.HYPERTROPHY
    workout_days: list[WorkoutDay] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)

    def find_day(self, day_id: str) -> WorkoutDay | None:
        """Look up one of this program's days by id."""
        for day in self.workout_days:
            if day.id == day_id:
                return day
        return None

    @property
    def total_sets(self) -> int:
        """Number of prescribed sets across all days."""
        return sum(len(day.exercises) for day in self.workout_days)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage and transfer."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "daysPerWeek": self.days_per_week,
            "goal": self.goal.value,
            "workoutDays": [day.to_dict() for day in self.workout_days],
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Program":
        """Create from dictionary."""
        created_at = parse_timestamp(data["createdAt"]) if data.get("createdAt") else utcnow()
        updated_at = (
            parse_timestamp(data["updatedAt"]) if data.get("updatedAt") else created_at
        )
        workout_days = [WorkoutDay.from_dict(d) for d in data.get("workoutDays") or []]
        return cls(
            id=data.get("id") or new_id(),
            name=data["name"],
            description=data.get("description") or "",
            duration=int(data.get("duration") or 8),
            days_per_week=int(data.get("daysPerWeek") or len(workout_days)),
            goal=ProgramGoal(data.get("goal") or ProgramGoal.GENERAL.value),
            workout_days=workout_days,
            created_at=created_at,
            updated_at=updated_at,
        )

    def get_summary(self) -> str:
        """Generate a summary of the program."""
        summary = f"Program: {self.name}\n"
        if self.description:
            summary += f"Description: {self.description}\n"
        summary += f"Goal: {self.goal.value}\n"
        summary += f"Duration: {self.duration} weeks, {self.days_per_week} days/week\n\n"

        for day in self.workout_days:
            summary += f"  {day.name}:\n"
            for s in day.exercises:
                reps = s.reps or str(s.target_reps)
                line = f"    - {s.exercise_name}: {s.set_number} x {reps}"
                if s.target_weight:
                    line += f" @ {s.target_weight:g}"
                if s.rest:
                    line += f" (rest {s.rest})"
                summary += line + "\n"

        return summary
