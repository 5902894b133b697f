"""Active workout commands."""

import click
import questionary

from ..models import Program, WorkoutDay, WorkoutLog
from ..session import WorkoutSession, format_elapsed, parse_rest_duration
from ..utils import utcnow
from .base import (
    async_command,
    echo_info,
    echo_success,
    format_table,
    open_store,
    reports_errors,
    resolve_program,
    resolve_set,
    short_id,
    synced_store,
)


def _resolve_day(program: Program, ref: str) -> WorkoutDay:
    if ref.isdigit() and 1 <= int(ref) <= len(program.workout_days):
        return program.workout_days[int(ref) - 1]
    for day in program.workout_days:
        if day.id.startswith(ref) or day.name.lower() == ref.lower():
            return day
    raise click.ClickException(f"Program {program.name!r} has no day {ref!r}")


def _print_workout(workout: WorkoutLog) -> None:
    elapsed = int((utcnow() - workout.date).total_seconds())
    done = len(workout.completed_sets)
    click.echo()
    click.echo(
        click.style("Workout in progress", bold=True)
        + f"  {format_elapsed(max(elapsed, 0))} elapsed, {done}/{len(workout.sets)} sets done"
    )
    if not workout.sets:
        echo_info("No sets yet. Add one with 'liftlog workout add-set'")
        return

    headers = ["#", "Exercise", "Target", "Actual", "RPE", "Rest", "Done"]
    rows = []
    for i, s in enumerate(workout.sets, start=1):
        target = f"{s.reps or s.target_reps} @ {s.target_weight:g}"
        actual = ""
        if s.is_performed:
            actual = f"{s.actual_reps or 0} @ {s.actual_weight or 0:g}"
        rows.append([
            str(i),
            s.exercise_name or "(unnamed)",
            target,
            actual,
            f"{s.rpe:g}" if s.rpe is not None else "",
            s.rest or "",
            "x" if s.completed else "",
        ])
    click.echo(format_table(headers, rows))


@click.group()
def workout():
    """Track the workout in progress.

    Start a workout from a program day (or empty), record each set,
    then finish or cancel it.
    """
    pass


@workout.command(name="start")
@click.option("--program", "-p", "program_ref", help="Program id, prefix or name")
@click.option("--day", "-d", "day_ref", help="Day number, id prefix or name")
@click.option("--replace", is_flag=True, help="Discard a workout already in progress")
@click.pass_context
@reports_errors
@async_command
async def start(ctx: click.Context, program_ref: str | None, day_ref: str | None, replace: bool):
    """Start a workout.

    Without --program, the active program is used when --day is given;
    otherwise an empty workout is started.
    """
    async with synced_store(ctx) as store:
        session = WorkoutSession(store)
        try:
            program = resolve_program(store, program_ref) if program_ref else None
            if program is None and day_ref:
                program = store.active_program
                if program is None:
                    raise click.ClickException("No active program; pass --program")

            if program is not None:
                day = _resolve_day(program, day_ref) if day_ref else None
                current = session.start_workout_from_program(
                    program, day.id if day else None, replace_current=replace
                )
                label = f"{program.name} / {day.name}" if day else program.name
            else:
                current = session.start_workout(replace_current=replace)
                label = "freeform workout"
        finally:
            session.close()

    echo_success(f"Started {label} ({len(current.sets)} sets)")


@workout.command(name="status")
@click.pass_context
def status(ctx: click.Context):
    """Show the workout in progress."""
    with open_store(ctx) as store:
        current = store.current_workout
    if current is None:
        echo_info("No workout in progress")
        return
    _print_workout(current)


@workout.command(name="add-set")
@click.option("--exercise", "-e", required=True, help="Exercise name")
@click.option("--reps", type=int, default=10, help="Target reps")
@click.option("--weight", type=float, default=0, help="Target weight")
@click.option("--rest", help='Rest prescription, e.g. "90 sec"')
@click.pass_context
@reports_errors
def add_set(ctx: click.Context, exercise: str, reps: int, weight: float, rest: str | None):
    """Add a set to the workout in progress."""
    with open_store(ctx) as store:
        session = WorkoutSession(store)
        current = session.current
        set_number = 1 + sum(
            1 for s in (current.sets if current else []) if s.exercise_name == exercise
        )
        session.add_set(
            exercise_name=exercise,
            set_number=set_number,
            target_reps=reps,
            target_weight=weight,
            rest=rest,
        )
        session.close()
    echo_success(f"Added {exercise} set {set_number}")


@workout.command(name="complete")
@click.argument("set_ref")
@click.option("--reps", "-r", type=int, required=True, help="Reps performed")
@click.option("--weight", "-w", type=float, required=True, help="Weight used")
@click.option("--rpe", type=float, help="Rate of perceived exertion")
@click.pass_context
@reports_errors
def complete(ctx: click.Context, set_ref: str, reps: int, weight: float, rpe: float | None):
    """Record a set as done (SET_REF is its number or id)."""
    with open_store(ctx) as store:
        session = WorkoutSession(store)
        try:
            target = resolve_set(session.require_active("complete set"), set_ref)
            done = session.complete_set(target.id, reps, weight, rpe)
        finally:
            session.close()

    echo_success(f"{done.exercise_name}: {reps} @ {weight:g}")
    rest = parse_rest_duration(done.rest)
    if rest:
        echo_info(f"Rest {format_elapsed(rest)}")


@workout.command(name="uncomplete")
@click.argument("set_ref")
@click.pass_context
@reports_errors
def uncomplete(ctx: click.Context, set_ref: str):
    """Mark a set as not done, keeping what was recorded."""
    with open_store(ctx) as store:
        session = WorkoutSession(store)
        try:
            target = resolve_set(session.require_active("uncomplete set"), set_ref)
            session.uncomplete_set(target.id)
        finally:
            session.close()
    echo_success(f"{target.exercise_name} set {target.set_number} marked not done")


@workout.command(name="remove-set")
@click.argument("set_ref")
@click.pass_context
@reports_errors
def remove_set(ctx: click.Context, set_ref: str):
    """Remove a set from the workout in progress."""
    with open_store(ctx) as store:
        session = WorkoutSession(store)
        try:
            target = resolve_set(session.require_active("remove set"), set_ref)
            session.remove_set(target.id)
        finally:
            session.close()
    echo_success(f"Removed {target.exercise_name or 'set'}")


@workout.command(name="finish")
@click.option("--notes", "-n", help="Notes for the log")
@click.option("--rating", type=click.IntRange(1, 5), help="How it went, 1-5")
@click.pass_context
@reports_errors
@async_command
async def finish(ctx: click.Context, notes: str | None, rating: int | None):
    """Finish the workout and add it to history."""
    async with synced_store(ctx) as store:
        session = WorkoutSession(store)
        try:
            log = session.finish_workout(notes=notes, rating=rating)
        finally:
            session.close()

    echo_success(
        f"Workout logged: {len(log.completed_sets)}/{len(log.sets)} sets, "
        f"{log.duration} min, volume {log.volume:g}"
    )


@workout.command(name="cancel")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@reports_errors
@async_command
async def cancel(ctx: click.Context, yes: bool):
    """Discard the workout in progress without logging it."""
    with open_store(ctx) as store:
        session = WorkoutSession(store)
        try:
            session.require_active("cancel workout")
            if not yes:
                confirmed = await questionary.confirm(
                    "Discard this workout? Nothing will be logged.", default=False
                ).ask_async()
                if not confirmed:
                    echo_info("Workout kept")
                    return
            session.cancel_workout()
        finally:
            session.close()
    echo_success("Workout discarded")
