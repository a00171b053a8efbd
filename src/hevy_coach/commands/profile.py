"""Training profile commands."""

import click

from ..errors import NotFoundError
from ..models.user_profile import FOCUS_AREAS, ExperienceLevel
from .base import (
    async_command,
    echo_info,
    echo_success,
    ensure_initialized,
    get_user,
    open_services,
)


@click.group()
@click.pass_context
def profile(ctx):
    """View and edit your training profile."""
    ensure_initialized(ctx)


@profile.command()
@click.pass_context
@async_command
async def show(ctx):
    """Show the current profile."""
    user_id = get_user(ctx)
    async with open_services(ctx) as services:
        current = await services.profiles.get(user_id)

    click.echo()
    click.echo(f"Profile for {user_id}")
    click.echo("-" * 40)
    click.echo(f"Age:              {current.effective_age or '-'}")
    click.echo(f"Birth date:       {current.birth_date or '-'}")
    click.echo(f"Weight (kg):      {current.weight or '-'}")
    click.echo(f"Sessions/week:    {current.training_frequency or '-'}")
    level = current.experience_level.value if current.experience_level else "-"
    click.echo(f"Experience:       {level}")
    click.echo(f"Focus areas:      {', '.join(current.focus_areas) or '-'}")
    click.echo(f"Injuries:         {', '.join(current.injuries) or '-'}")
    if current.injury_details:
        click.echo(f"Injury details:   {current.injury_details}")
    if current.other_activities:
        click.echo(f"Other activities: {current.other_activities}")


@profile.command(name="set")
@click.option("--age", type=int, help="Age in years")
@click.option("--birth-date", help="Birth date (YYYY-MM-DD)")
@click.option("--weight", type=float, help="Body weight in kg")
@click.option("--frequency", type=int, help="Preferred sessions per week")
@click.option(
    "--experience",
    type=click.Choice([level.value for level in ExperienceLevel]),
    help="Training experience",
)
@click.option(
    "--focus",
    multiple=True,
    type=click.Choice(FOCUS_AREAS),
    help="Focus area (repeatable)",
)
@click.option("--injury", multiple=True, help="Injured area (repeatable)")
@click.option("--injury-details", help="Free-text injury notes")
@click.option("--activities", help="Other sports or activities")
@click.pass_context
@async_command
async def set_profile(
    ctx,
    age: int | None,
    birth_date: str | None,
    weight: float | None,
    frequency: int | None,
    experience: str | None,
    focus: tuple[str, ...],
    injury: tuple[str, ...],
    injury_details: str | None,
    activities: str | None,
):
    """Update profile fields. Options not given keep their current value."""
    user_id = get_user(ctx)
    async with open_services(ctx) as services:
        try:
            data = (await services.profiles.get(user_id)).to_dict()
        except NotFoundError:
            echo_info("No profile yet, creating one")
            data = {}

        updates = {
            "age": age,
            "birth_date": birth_date,
            "weight": weight,
            "training_frequency": frequency,
            "experience_level": experience,
            "injury_details": injury_details,
            "other_activities": activities,
        }
        data.update({k: v for k, v in updates.items() if v is not None})
        if focus:
            data["focus_areas"] = list(focus)
        if injury:
            data["injuries"] = list(injury)

        await services.profiles.save(user_id, data)
    echo_success("Profile saved")
