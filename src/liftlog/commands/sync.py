"""Sync server commands."""

import click

from ..sync import ReconcileAction, ReconcileResult
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    get_settings,
    make_engine,
    open_store,
)

_MESSAGES = {
    ReconcileAction.ADOPTED_REMOTE: "Downloaded {programs} programs and {workout_logs} workouts",
    ReconcileAction.PUSHED_LOCAL: "Uploaded {programs} programs and {workout_logs} workouts",
    ReconcileAction.MERGED: "Merged: {programs} programs and {workout_logs} workouts on both sides",
    ReconcileAction.PULLED: "Replaced local data with {programs} programs and {workout_logs} workouts",
    ReconcileAction.NOOP: "Nothing to sync yet",
}


def _report(ctx: click.Context, result: ReconcileResult) -> None:
    if result.action is ReconcileAction.DISABLED:
        echo_warning("Sync is disabled. Set LIFTLOG_SYNC_URL to enable it.")
        ctx.exit(1)
    if result.action is ReconcileAction.OFFLINE:
        echo_error("Sync server is unreachable")
        ctx.exit(1)
    if result.action is ReconcileAction.FAILED:
        echo_error(f"Sync failed: {result.error}")
        ctx.exit(1)
    echo_success(
        _MESSAGES[result.action].format(
            programs=result.programs, workout_logs=result.workout_logs
        )
    )


async def _run(ctx: click.Context, operation: str) -> ReconcileResult:
    with open_store(ctx) as store:
        engine = make_engine(get_settings(ctx), store)
        try:
            # An unreachable server leaves the engine offline and every
            # operation below reports it
            await engine.connect()
            if operation == "pull":
                return await engine.pull()
            if operation == "push":
                return await engine.push_all()
            return await engine.reconcile()
        finally:
            await engine.stop()
            if engine.remote is not None:
                await engine.remote.close()


@click.group()
def sync():
    """Synchronize with a liftlog sync server."""
    pass


@sync.command(name="now")
@click.pass_context
@async_command
async def sync_now(ctx: click.Context):
    """Reconcile local data with the server (merge by most recent edit)."""
    _report(ctx, await _run(ctx, "reconcile"))


@sync.command(name="pull")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def sync_pull(ctx: click.Context, yes: bool):
    """Overwrite local data with the server's copy."""
    if not yes and not click.confirm("Replace local programs and history with the server's?"):
        echo_info("Cancelled")
        return
    _report(ctx, await _run(ctx, "pull"))


@sync.command(name="push")
@click.pass_context
@async_command
async def sync_push(ctx: click.Context):
    """Upload all local programs and workouts to the server."""
    _report(ctx, await _run(ctx, "push"))


@sync.command(name="status")
@click.pass_context
def sync_status(ctx: click.Context):
    """Show sync configuration."""
    settings = get_settings(ctx)
    if not settings.sync_enabled:
        echo_info("Sync disabled (LIFTLOG_SYNC_URL is not set)")
        return
    echo_info(f"Server: {settings.sync_url}")
    device = settings.device_id_path
    echo_info(f"Device: {device.read_text().strip() if device.exists() else '(not created yet)'}")
