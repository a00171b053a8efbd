"""Generate program command."""

import json

import click

from ..models.routine import GenerationRequest, ProgressionType, Routine
from .base import async_command, echo_info, echo_success, ensure_initialized, get_user, open_services


def print_routine(routine: Routine) -> None:
    click.echo()
    click.echo(click.style(routine.title, bold=True))
    if routine.notes:
        click.echo(f"  {routine.notes}")
    for exercise in routine.exercises:
        sets = ", ".join(
            f"{s.rep_range.start}-{s.rep_range.end}"
            + (f" @ {s.weight_kg:g}kg" if s.weight_kg else "")
            + ("" if s.type_value == "normal" else f" ({s.type_value})")
            for s in exercise.sets
        )
        superset = f" [superset {exercise.superset_id}]" if exercise.superset_id else ""
        click.echo(f"  - {exercise.title}{superset}: {sets} (rest {exercise.rest_seconds}s)")


@click.command()
@click.option(
    "--per-week",
    "-n",
    "workouts_per_week",
    type=click.IntRange(1, 7),
    required=True,
    help="Workouts per week (1-7)",
)
@click.option(
    "--session",
    "-s",
    "session_duration",
    type=click.IntRange(30, 180),
    default=60,
    help="Session length in minutes (30-180, default: 60)",
)
@click.option(
    "--weeks",
    "-w",
    "duration",
    type=click.IntRange(1, 12),
    default=4,
    help="Program length in weeks (1-12, default: 4)",
)
@click.option("--focus", "focus_area", help="Focus area, e.g. hypertrophy")
@click.option("--split", "split_type", help="Split type, e.g. upper_lower")
@click.option("--instructions", "special_instructions", help="Free-text instructions")
@click.option(
    "--progression",
    "progression_type",
    type=click.Choice([p.value for p in ProgressionType]),
    default=ProgressionType.LINEAR.value,
    help="Progression model (default: linear)",
)
@click.option(
    "--expand-weeks",
    is_flag=True,
    help="Derive one routine per week when a single routine comes back",
)
@click.option("--json", "as_json", is_flag=True, help="Print the stored result as JSON")
@click.pass_context
@async_command
async def generate(ctx, as_json: bool, **params):
    """Generate a training program from your profile and Hevy history.

    Run 'hevy-coach sync' first so the exercise catalog and workouts are cached.

    Examples:

        # Four sessions a week for eight weeks
        hevy-coach generate -n 4 -w 8

        # Hypertrophy block with 75 minute sessions
        hevy-coach generate -n 5 -s 75 --focus hypertrophy --progression block
    """
    ensure_initialized(ctx)
    user_id = get_user(ctx)
    request = GenerationRequest.from_dict(params)

    async with open_services(ctx) as services:
        echo_info("Generating program, this can take a minute...")
        generated = await services.generator.generate(user_id, request)

    if as_json:
        click.echo(json.dumps(generated.to_dict(), indent=2))
        return

    echo_success(f"Program saved with ID {generated.id}")
    if generated.reasoning:
        click.echo()
        click.echo(generated.reasoning)
    for routine in generated.routines:
        print_routine(routine)
    if generated.periodization_notes:
        click.echo()
        click.echo("Periodization:")
        click.echo(f"  {generated.periodization_notes}")
    click.echo()
    click.echo(f"Export to Hevy with: hevy-coach export {generated.id}")
