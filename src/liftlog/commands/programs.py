"""Program management commands."""

import json
from pathlib import Path

import click

from ..errors import ValidationError
from ..models import Program, ProgramGoal
from ..services import load_templates, program_from_generated, program_from_template
from ..services.program_builder import validate_program_fields
from .base import (
    async_command,
    echo_info,
    echo_success,
    echo_warning,
    format_table,
    open_store,
    reports_errors,
    resolve_program,
    short_id,
    synced_store,
)

GOALS = [g.value for g in ProgramGoal]


@click.group()
def programs():
    """Manage training programs.

    Commands for creating, listing, activating, and deleting programs.
    """
    pass


@programs.command(name="list")
@click.pass_context
def list_programs(ctx: click.Context):
    """List all programs."""
    with open_store(ctx) as store:
        all_programs = store.programs
        active = store.active_program

    if not all_programs:
        echo_info("No programs found. Create one with 'liftlog programs create'")
        return

    headers = ["", "ID", "Name", "Goal", "Days", "Weeks", "Updated"]
    rows = []
    for prog in all_programs:
        rows.append([
            "*" if active and prog.id == active.id else "",
            short_id(prog.id),
            prog.name[:30] + "..." if len(prog.name) > 30 else prog.name,
            prog.goal.value,
            str(len(prog.workout_days)),
            str(prog.duration),
            prog.updated_at.strftime("%Y-%m-%d"),
        ])

    click.echo()
    click.echo(format_table(headers, rows))
    click.echo()
    click.echo(f"Total: {len(all_programs)} program(s); * marks the active program")


@programs.command(name="show")
@click.argument("program")
@click.pass_context
def show_program(ctx: click.Context, program: str):
    """Show a program's days and prescribed sets."""
    with open_store(ctx) as store:
        prog = resolve_program(store, program)

    click.echo()
    click.echo(prog.get_summary())
    for i, day in enumerate(prog.workout_days, start=1):
        click.echo(f"  Day {i}: {day.name} ({short_id(day.id)})")


@programs.command(name="templates")
def list_templates():
    """List the bundled program templates."""
    templates = load_templates()
    headers = ["Template", "Name", "Goal", "Days"]
    rows = [
        [key, t["name"], t["goal"], str(len(t["workoutDays"]))]
        for key, t in sorted(templates.items())
    ]
    click.echo(format_table(headers, rows))


@programs.command(name="create")
@click.option("--name", "-n", help="Program name")
@click.option("--description", "-d", default="", help="Short description")
@click.option("--goal", type=click.Choice(GOALS), default=ProgramGoal.HYPERTROPHY.value)
@click.option("--duration", type=int, default=8, help="Length in weeks")
@click.option("--template", "-t", help="Start from a bundled template")
@click.option(
    "--from-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Generated program JSON to import",
)
@click.option("--activate", is_flag=True, help="Make it the active program")
@click.pass_context
@reports_errors
@async_command
async def create_program(
    ctx: click.Context,
    name: str | None,
    description: str,
    goal: str,
    duration: int,
    template: str | None,
    from_file: Path | None,
    activate: bool,
):
    """Create a program by hand, from a template, or from a generated document.

    Examples:

        liftlog programs create --name "My Split" --goal strength

        liftlog programs create --template general --activate

        liftlog programs create --from-file generated.json
    """
    if template:
        program = program_from_template(template)
    elif from_file:
        try:
            doc = json.loads(from_file.read_text())
        except json.JSONDecodeError as e:
            raise ValidationError(f"{from_file} is not valid JSON: {e}") from e
        # Generators wrap the document as {"program": {...}}
        program = program_from_generated(doc.get("program", doc))
    else:
        program = Program(
            name=(name or "").strip(),
            description=description,
            goal=ProgramGoal(goal),
            duration=duration,
            days_per_week=0,
        )

    if name:
        program.name = name.strip()
    validate_program_fields(program)

    async with synced_store(ctx) as store:
        created = store.add_program(program)
        if activate:
            store.set_active_program(created)

    echo_success(f"Program created: {created.name} ({short_id(created.id)})")
    if not created.workout_days:
        echo_warning("The program has no workout days yet")
    if activate:
        echo_success("Program is now active")


@programs.command(name="rename")
@click.argument("program")
@click.argument("name")
@click.pass_context
@reports_errors
@async_command
async def rename_program(ctx: click.Context, program: str, name: str):
    """Rename a program."""
    validate_program_fields({"name": name})
    async with synced_store(ctx) as store:
        prog = resolve_program(store, program)
        store.update_program(prog.id, name=name.strip())
    echo_success(f"Renamed to {name.strip()}")


@programs.command(name="activate")
@click.argument("program")
@click.pass_context
@reports_errors
@async_command
async def activate_program(ctx: click.Context, program: str):
    """Make a program the active one."""
    async with synced_store(ctx) as store:
        prog = resolve_program(store, program)
        store.set_active_program(prog)
    echo_success(f"Active program: {prog.name}")


@programs.command(name="deactivate")
@click.pass_context
@reports_errors
@async_command
async def deactivate_program(ctx: click.Context):
    """Clear the active program."""
    async with synced_store(ctx) as store:
        store.set_active_program(None)
    echo_success("No program is active")


@programs.command(name="delete")
@click.argument("program")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@reports_errors
@async_command
async def delete_program(ctx: click.Context, program: str, yes: bool):
    """Delete a program and its workout days.

    Logged workouts that reference it are kept.
    """
    async with synced_store(ctx) as store:
        prog = resolve_program(store, program)
        if not yes and not click.confirm(f"Delete program '{prog.name}'?"):
            echo_info("Cancelled")
            return
        store.delete_program(prog.id)
    echo_success(f"Deleted program {prog.name}")
