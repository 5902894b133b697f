"""Workout history commands."""

import click

from .base import (
    async_command,
    echo_info,
    echo_success,
    format_table,
    open_store,
    reports_errors,
    resolve_log,
    short_id,
    synced_store,
)


@click.group()
def history():
    """Browse and correct logged workouts."""
    pass


@history.command(name="list")
@click.option("--limit", "-n", default=20, help="Number of workouts to show")
@click.pass_context
def list_history(ctx: click.Context, limit: int):
    """List logged workouts, newest first."""
    with open_store(ctx) as store:
        logs = sorted(store.workout_logs, key=lambda log: log.date, reverse=True)
        names = {p.id: p.name for p in store.programs}

    if not logs:
        echo_info("No workouts logged yet")
        return

    headers = ["ID", "Date", "Program", "Sets", "Volume", "Minutes", "Rating"]
    rows = []
    for log in logs[:limit]:
        rows.append([
            short_id(log.id),
            log.date.strftime("%Y-%m-%d %H:%M"),
            names.get(log.program_id, "-") if log.program_id else "freeform",
            f"{len(log.completed_sets)}/{len(log.sets)}",
            f"{log.volume:g}",
            str(log.duration),
            str(log.rating) if log.rating else "",
        ])
    click.echo(format_table(headers, rows))
    if len(logs) > limit:
        click.echo(f"... and {len(logs) - limit} more")


@history.command(name="show")
@click.argument("workout")
@click.pass_context
def show_workout(ctx: click.Context, workout: str):
    """Show every set of a logged workout."""
    with open_store(ctx) as store:
        log = resolve_log(store, workout)

    click.echo(f"{log.date:%Y-%m-%d %H:%M}  {log.duration} min  volume {log.volume:g}")
    if log.notes:
        click.echo(f"Notes: {log.notes}")
    rows = [
        [
            s.exercise_name,
            str(s.set_number),
            f"{s.actual_reps or 0} @ {s.actual_weight or 0:g}",
            f"{s.rpe:g}" if s.rpe is not None else "",
            "x" if s.completed else "",
        ]
        for s in log.sets
    ]
    if rows:
        click.echo(format_table(["Exercise", "Set", "Actual", "RPE", "Done"], rows))


@history.command(name="note")
@click.argument("workout")
@click.option("--notes", "-n", help="Replace the notes")
@click.option("--rating", type=click.IntRange(1, 5), help="Replace the rating")
@click.pass_context
@reports_errors
@async_command
async def note_workout(ctx: click.Context, workout: str, notes: str | None, rating: int | None):
    """Correct the notes or rating of a logged workout."""
    changes = {k: v for k, v in (("notes", notes), ("rating", rating)) if v is not None}
    if not changes:
        raise click.UsageError("Pass --notes and/or --rating")
    async with synced_store(ctx) as store:
        log = resolve_log(store, workout)
        store.update_workout_log(log.id, **changes)
    echo_success("Workout updated")


@history.command(name="delete")
@click.argument("workout")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@reports_errors
@async_command
async def delete_workout(ctx: click.Context, workout: str, yes: bool):
    """Delete a logged workout."""
    async with synced_store(ctx) as store:
        log = resolve_log(store, workout)
        if not yes and not click.confirm(f"Delete workout from {log.date:%Y-%m-%d}?"):
            echo_info("Cancelled")
            return
        store.delete_workout_log(log.id)
    echo_success("Workout deleted")
