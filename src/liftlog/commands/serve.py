"""Sync server command."""

import click

from ..db import get_server_db_path
from .base import get_settings


@click.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", default=8000, type=int, help="Port to bind to (default: 8000)")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """Start the sync server.

    Devices point LIFTLOG_SYNC_URL at this server to share programs and
    workout history. Each device is identified by its device id.

    Examples:

        # Start on default port (8000)
        liftlog serve

        # Expose to network (all interfaces)
        liftlog serve --host 0.0.0.0
    """
    import uvicorn

    from ..web import create_app

    settings = get_settings(ctx)
    db_path = get_server_db_path(settings.data_dir)

    click.echo()
    click.echo(click.style("Starting liftlog sync server...", fg="green"))
    click.echo()
    click.echo(f"  Local:    http://{host}:{port}")
    click.echo(f"  Database: {db_path}")
    click.echo()
    click.echo("Press Ctrl+C to stop the server.")
    click.echo()

    uvicorn.run(
        create_app(db_path),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )
