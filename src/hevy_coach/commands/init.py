"""Initialize project command."""

import click

from ..db import init_db
from .base import async_command, echo_info, echo_success, echo_warning, get_settings_obj


@click.command()
@click.pass_context
@async_command
async def init(ctx):
    """Create the data directory and the SQLite database."""
    settings = get_settings_obj(ctx)
    db_path = settings.db_path

    echo_info(f"Initializing hevy-coach in {settings.data_dir}")
    await init_db(db_path)
    echo_success(f"Database initialized at {db_path}")

    if not settings.hevy_api_key:
        echo_warning("HEVY_API_KEY is not set; syncing will fail until it is.")
    if not settings.openai_api_key:
        echo_warning("OPENAI_API_KEY is not set; generation will fail until it is.")

    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Fill in your profile:")
    click.echo("     hevy-coach profile set --frequency 4 --experience intermediate")
    click.echo("  2. Pull your Hevy data:")
    click.echo("     hevy-coach sync all")
    click.echo("  3. Generate a program:")
    click.echo("     hevy-coach generate --per-week 4 --session 60 --weeks 8")
