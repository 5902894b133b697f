"""Initialize project command."""

import click

from ..store import LocalStore
from ..sync import get_or_create_device_id
from .base import echo_info, echo_success, get_settings


@click.command()
@click.pass_context
def init(ctx: click.Context):
    """Initialize the liftlog data directory and local database.

    Safe to run again: existing data is kept.
    """
    settings = get_settings(ctx)
    data_dir = settings.data_dir

    echo_info(f"Initializing liftlog in {data_dir}")
    data_dir.mkdir(parents=True, exist_ok=True)

    store = LocalStore.open(settings.db_path)
    programs, logs = len(store.programs), len(store.workout_logs)
    store.close()
    echo_success(f"Local database ready ({programs} programs, {logs} workouts)")

    device_id = get_or_create_device_id(settings.device_id_path)
    echo_success(f"Device id: {device_id}")

    click.echo()
    click.echo("liftlog is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Create a program:")
    click.echo("     liftlog programs templates")
    click.echo("     liftlog programs create --template general")
    click.echo()
    click.echo("  2. Train:")
    click.echo("     liftlog workout start --program <id> --day 1")
    if not settings.sync_enabled:
        click.echo()
        click.echo("Set LIFTLOG_SYNC_URL to sync with a liftlog server.")
