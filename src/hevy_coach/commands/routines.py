"""Generated routine commands."""

import click

from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    ensure_initialized,
    format_table,
    get_user,
    open_services,
)
from .generate import print_routine


@click.group()
@click.pass_context
def routines(ctx):
    """Browse generated programs."""
    ensure_initialized(ctx)


@routines.command(name="list")
@click.pass_context
@async_command
async def list_routines(ctx):
    """List generated programs, newest first."""
    user_id = get_user(ctx)
    async with open_services(ctx) as services:
        generated = await services.generated_routines.list_for_user(user_id)

    if not generated:
        echo_info("No programs found. Generate one with 'hevy-coach generate'")
        return

    rows = []
    for item in generated:
        meta = item.metadata
        first = item.routines[0].title if item.routines else "Untitled Routine"
        rows.append([
            str(item.id),
            first[:30] + "..." if len(first) > 30 else first,
            str(meta["routine_count"]),
            str(meta["duration"] or "-"),
            meta["progression_type"] or "-",
            "yes" if item.exported_to_hevy else "no",
            item.created_at.strftime("%Y-%m-%d") if item.created_at else "N/A",
        ])

    click.echo()
    click.echo(
        format_table(
            ["ID", "First routine", "Routines", "Weeks", "Progression", "Exported", "Created"],
            rows,
        )
    )
    click.echo()
    click.echo(f"Total: {len(generated)} program(s)")


@routines.command()
@click.argument("routine_id", type=int)
@click.pass_context
@async_command
async def show(ctx, routine_id: int):
    """Show every routine of a generated program."""
    user_id = get_user(ctx)
    async with open_services(ctx) as services:
        generated = await services.generated_routines.get(routine_id)

    if generated is None or generated.user_id != user_id:
        echo_error(f"Program ID {routine_id} not found")
        ctx.exit(1)

    meta = generated.metadata
    click.echo()
    click.echo("=" * 60)
    click.echo(f"Program {generated.id}: {meta['routine_count']} routine(s)")
    click.echo("=" * 60)
    click.echo(
        f"{meta['workouts_per_week']}x/week, {meta['session_duration']} min, "
        f"{meta['duration']} weeks, {meta['progression_type']} progression"
    )
    if generated.exported_to_hevy:
        click.echo(f"Exported to Hevy as {generated.hevy_routine_id}")
    if generated.reasoning:
        click.echo()
        click.echo(generated.reasoning)
    for routine in generated.routines:
        print_routine(routine)


@click.command()
@click.argument("routine_id", type=int)
@click.option("--index", "-i", default=0, type=int, help="Which routine of the program")
@click.pass_context
@async_command
async def export(ctx, routine_id: int, index: int):
    """Create a generated routine in Hevy."""
    ensure_initialized(ctx)
    user_id = get_user(ctx)
    async with open_services(ctx) as services:
        result = await services.exports.export(user_id, routine_id, index)
    echo_success(
        f"Exported '{result['routine_title']}' as Hevy routine {result['hevy_routine_id']}"
    )
