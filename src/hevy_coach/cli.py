"""CLI entry point for hevy-coach."""

import click

from . import __version__
from .commands import (
    export,
    generate,
    init,
    profile,
    routines,
    serve,
    sync,
    sync_cleanup,
    sync_status,
)
from .config import get_settings
from .logging_config import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="hevy-coach")
@click.option(
    "--user",
    envvar="HEVY_COACH_USER",
    default="local",
    show_default=True,
    help="User the command acts for",
)
@click.pass_context
def main(ctx, user: str):
    """hevy-coach: AI-generated workout programs from your Hevy history.

    Example usage:

        # Create the database
        hevy-coach init

        # Pull exercises, routines and workouts from Hevy
        hevy-coach sync

        # Generate and export a program
        hevy-coach generate --per-week 4 --weeks 8
        hevy-coach export 1
    """
    settings = get_settings()
    configure_logging(settings)
    ctx.obj = {"settings": settings, "user": user}


main.add_command(init)
main.add_command(profile)
main.add_command(sync)
main.add_command(sync_status)
main.add_command(sync_cleanup)
main.add_command(generate)
main.add_command(routines)
main.add_command(export)
main.add_command(serve)


def run():
    """Run the CLI (handles async event loop)."""
    main()


if __name__ == "__main__":
    run()
