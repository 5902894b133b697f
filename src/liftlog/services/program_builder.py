"""Turns authored, templated or AI-generated documents into Programs.

Programs from any of these sources enter the store the same way; nothing
downstream can tell them apart.
"""

import json
import re
from pathlib import Path
from typing import Any

from ..errors import ValidationError
from ..models import Program, ProgramGoal, WorkoutDay, WorkoutSet

DEFAULT_SETS = 3
DEFAULT_TARGET_REPS = 10

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def get_templates_path() -> Path:
    """Get the path to the bundled program templates."""
    return Path(__file__).parent.parent / "data" / "program_templates.json"


def load_templates() -> dict[str, dict]:
    """Load the bundled program templates, keyed by template name."""
    with open(get_templates_path()) as f:
        data = json.load(f)
    return data.get("templates", {})


def _leading_int(value: Any) -> int | None:
    """The integer a reps prescription starts with ("8-10" gives 8)."""
    if value is None:
        return None
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else None


def _generated_set(ex: dict) -> WorkoutSet:
    return WorkoutSet(
        exercise_name=ex.get("exerciseName") or "",
        set_number=int(ex.get("setNumber") or ex.get("sets") or DEFAULT_SETS),
        target_reps=int(
            ex.get("targetReps") or _leading_int(ex.get("reps")) or DEFAULT_TARGET_REPS
        ),
        target_weight=ex.get("targetWeight") or 0,
        reps=str(ex["reps"]) if ex.get("reps") else None,
        tempo=ex.get("tempo") or None,
        intensity=ex.get("intensity") or None,
        rest=ex.get("rest") or None,
        notes=ex.get("notes") or None,
    )


def program_from_generated(
    doc: dict,
    goal: ProgramGoal | str | None = None,
    duration: int | None = None,
) -> Program:
    """Convert a generated program document into a Program.

    Every day and set gets a fresh id regardless of what the document
    carries, so generating twice never produces colliding entities.

    Args:
        doc: Document with ``name``, ``description`` and ``workoutDays``
        goal: Goal to record; falls back to the document's, then general
        duration: Weeks; falls back to the document's, then 8
    """
    days = [
        WorkoutDay(
            name=day.get("name") or f"Day {i}",
            day_of_week=int(day.get("dayOfWeek") or 0),
            week_number=day.get("weekNumber"),
            day_number=day.get("dayNumber"),
            notes=day.get("notes") or None,
            exercises=[_generated_set(ex) for ex in day.get("exercises") or []],
        )
        for i, day in enumerate(doc.get("workoutDays") or [], start=1)
    ]
    program = Program(
        name=(doc.get("name") or "").strip(),
        description=doc.get("description") or "",
        duration=int(duration or doc.get("duration") or 8),
        days_per_week=len(days),
        goal=ProgramGoal(goal or doc.get("goal") or ProgramGoal.GENERAL.value),
        workout_days=days,
    )
    validate_program_fields(program)
    return program


def program_from_template(name: str) -> Program:
    """Build a fresh Program from one of the bundled templates."""
    templates = load_templates()
    if name not in templates:
        raise ValidationError(
            f"Unknown template {name!r}; choose from {', '.join(sorted(templates))}"
        )
    return program_from_generated(templates[name])


def validate_program_fields(program: Program | dict) -> None:
    """Reject programs the store should never see.

    Raises:
        ValidationError: if the name is blank or a field is out of range
    """
    if isinstance(program, dict):
        name = program.get("name")
        duration = program.get("duration", 1)
        days_per_week = program.get("days_per_week", program.get("daysPerWeek", 0))
    else:
        name, duration, days_per_week = program.name, program.duration, program.days_per_week

    if not name or not str(name).strip():
        raise ValidationError("Please enter a program name")
    if duration is not None and int(duration) < 1:
        raise ValidationError("Program duration must be at least one week")
    if days_per_week is not None and not 0 <= int(days_per_week) <= 7:
        raise ValidationError("Days per week must be between 0 and 7")
