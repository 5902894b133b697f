"""Backup and restore commands."""

from pathlib import Path

import click

from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    open_store,
    synced_store,
)


@click.group()
def backup():
    """Export or restore programs, history and chat as JSON."""
    pass


@backup.command(name="export")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path), required=False)
@click.pass_context
def export_backup(ctx: click.Context, output: Path | None):
    """Write a backup to OUTPUT (or stdout)."""
    with open_store(ctx) as store:
        document = store.export_snapshot()
        counts = (len(store.programs), len(store.workout_logs))

    if output is None:
        click.echo(document)
        return

    output.write_text(document)
    echo_success(f"Backup written to {output} ({counts[0]} programs, {counts[1]} workouts)")


@backup.command(name="import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def import_backup(ctx: click.Context, source: Path, yes: bool):
    """Replace programs, history and chat with a backup's contents.

    This is a restore, not a merge: everything currently stored is replaced.
    The workout in progress (if any) is kept.
    """
    if not yes and not click.confirm("Replace all local programs and history?"):
        echo_info("Cancelled")
        return

    async with synced_store(ctx) as store:
        if not store.import_snapshot(source.read_bytes()):
            echo_error(f"{source} is not a valid liftlog backup; nothing was changed")
            ctx.exit(1)
        counts = (len(store.programs), len(store.workout_logs))

    echo_success(f"Restored {counts[0]} programs and {counts[1]} workouts")
