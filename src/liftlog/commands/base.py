"""Shared CLI utilities."""

import asyncio
from contextlib import asynccontextmanager, contextmanager
from functools import wraps
from typing import AsyncIterator, Iterator

import click

from ..config import Settings, load_settings
from ..errors import LiftlogError
from ..models import Program, WorkoutLog, WorkoutSet
from ..store import LocalStore
from ..sync import HttpSyncClient, ReconciliationEngine, get_or_create_device_id


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def reports_errors(f):
    """Decorator that turns liftlog errors into an [ERROR] line and exit code 1."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except LiftlogError as e:
            echo_error(str(e))
            raise SystemExit(1)

    return wrapper


def get_settings(ctx: click.Context) -> Settings:
    """Settings resolved by the root command (loaded on demand otherwise)."""
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = load_settings()
    return ctx.obj["settings"]


def ensure_initialized(ctx: click.Context) -> None:
    """Ensure the local database exists."""
    settings = get_settings(ctx)
    if not settings.db_path.exists():
        click.echo(
            click.style("Error: ", fg="red")
            + "Project not initialized. Run 'liftlog init' first."
        )
        ctx.exit(1)


@contextmanager
def open_store(ctx: click.Context) -> Iterator[LocalStore]:
    """Open the local store for the duration of a command."""
    ensure_initialized(ctx)
    store = LocalStore.open(get_settings(ctx).db_path)
    try:
        yield store
    finally:
        store.close()


def make_engine(settings: Settings, store: LocalStore) -> ReconciliationEngine:
    """Build a reconciliation engine; sync is disabled without a sync URL."""
    remote = None
    if settings.sync_enabled:
        remote = HttpSyncClient(
            settings.sync_url,
            get_or_create_device_id(settings.device_id_path),
            timeout=settings.sync_timeout,
        )
    return ReconciliationEngine(store, remote)


@asynccontextmanager
async def synced_store(ctx: click.Context) -> AsyncIterator[LocalStore]:
    """Open the store and mirror its sync-relevant mutations to the server.

    Pushes are flushed before the command exits. An unreachable server only
    means the command works locally.
    """
    with open_store(ctx) as store:
        engine = make_engine(get_settings(ctx), store)
        await engine.connect()
        try:
            yield store
        finally:
            await engine.flush()
            await engine.stop()
            if engine.remote is not None:
                await engine.remote.close()
        if engine.outbox is not None and engine.outbox.failures:
            echo_warning("Some changes could not be pushed to the sync server")


def resolve_program(store: LocalStore, ref: str) -> Program:
    """Find a program by id, unique id prefix or exact name."""
    matches = [p for p in store.programs if p.id == ref]
    if not matches:
        matches = [p for p in store.programs if p.id.startswith(ref) or p.name == ref]
    if len(matches) != 1:
        problem = "No program matches" if not matches else "Ambiguous program reference"
        raise click.ClickException(f"{problem} {ref!r}")
    return matches[0]


def resolve_log(store: LocalStore, ref: str) -> WorkoutLog:
    """Find a workout log by id or unique id prefix."""
    matches = [log for log in store.workout_logs if log.id.startswith(ref)]
    if len(matches) != 1:
        problem = "No workout matches" if not matches else "Ambiguous workout reference"
        raise click.ClickException(f"{problem} {ref!r}")
    return matches[0]


def resolve_set(workout: WorkoutLog, ref: str) -> WorkoutSet:
    """Find a set by its 1-based position, id or unique id prefix."""
    if ref.isdigit() and 1 <= int(ref) <= len(workout.sets):
        return workout.sets[int(ref) - 1]
    matches = [s for s in workout.sets if s.id.startswith(ref)]
    if len(matches) != 1:
        raise click.ClickException(f"No set matches {ref!r}")
    return matches[0]


def short_id(entity_id: str) -> str:
    return entity_id[:8]


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message)


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(click.style("[INFO] ", fg="blue") + message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.echo(click.style("[WARN] ", fg="yellow") + message)


def format_table(headers: list[str], rows: list[list[str]], padding: int = 2) -> str:
    """Format data as a simple table."""
    if not rows:
        return ""

    # Calculate column widths
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = ["".join(h.ljust(widths[i] + padding) for i, h in enumerate(headers))]
    lines.append("".join("-" * w + " " * padding for w in widths))
    for row in rows:
        lines.append("".join(str(cell).ljust(widths[i] + padding) for i, cell in enumerate(row)))

    return "\n".join(lines)
