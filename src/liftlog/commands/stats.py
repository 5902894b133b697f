"""Training statistics command."""

import json

import click

from ..services import compute_stats
from .base import format_table, open_store


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Show streaks, volume, weekly count and personal records."""
    with open_store(ctx) as store:
        result = compute_stats(store.workout_logs)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo()
    click.echo(click.style("Training Stats", bold=True))
    click.echo("=" * 40)
    click.echo(f"  Workouts:        {result.total_workouts}")
    click.echo(f"  This week:       {result.weekly_workouts}")
    click.echo(f"  Current streak:  {result.current_streak} day(s)")
    click.echo(f"  Longest streak:  {result.longest_streak} day(s)")
    click.echo(f"  Total volume:    {result.total_volume:g}")

    if result.personal_records:
        click.echo()
        click.echo(click.style("Personal Records", bold=True))
        rows = [
            [pr.exercise_name, f"{pr.weight:g} x {pr.reps}", pr.date.strftime("%Y-%m-%d")]
            for pr in sorted(result.personal_records, key=lambda pr: pr.exercise_name)
        ]
        click.echo(format_table(["Exercise", "Best set", "Date"], rows))
