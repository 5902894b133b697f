"""CLI entry point for liftlog."""

import click

from . import __version__
from .commands import backup, chat, history, init, programs, serve, stats, sync, workout
from .config import load_settings
from .log import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="liftlog")
@click.option("--env-file", type=click.Path(dir_okay=False), help="Load settings from this .env file")
@click.option("--log-level", help="Override LIFTLOG_LOG_LEVEL")
@click.pass_context
def main(ctx: click.Context, env_file: str | None, log_level: str | None):
    """liftlog: local-first workout tracker.

    Programs, workout history and the workout in progress live in a local
    database and work offline. Point LIFTLOG_SYNC_URL at a liftlog server
    to keep several devices in step.

    Example usage:

        # Initialize the data directory
        liftlog init

        # Create and activate a program
        liftlog programs create --template strength --activate

        # Train
        liftlog workout start --day 1
        liftlog workout complete 1 --reps 5 --weight 100
        liftlog workout finish --rating 4

        # Review
        liftlog stats
    """
    settings = load_settings(env_file)
    if log_level:
        settings.log_level = log_level
    setup_logging(settings.log_level, settings.log_format)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


# Register commands
main.add_command(init)
main.add_command(programs)
main.add_command(workout)
main.add_command(history)
main.add_command(stats)
main.add_command(backup)
main.add_command(sync)
main.add_command(chat)
main.add_command(serve)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
