"""Derived analytics and program building."""

from .analytics import (
    compute_stats,
    compute_streaks,
    personal_records,
    total_volume,
    weekly_workout_count,
)
from .program_builder import (
    load_templates,
    program_from_generated,
    program_from_template,
    validate_program_fields,
)

__all__ = [
    "compute_stats",
    "compute_streaks",
    "load_templates",
    "personal_records",
    "program_from_generated",
    "program_from_template",
    "total_volume",
    "validate_program_fields",
    "weekly_workout_count",
]
