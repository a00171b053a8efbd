"""Shared CLI utilities."""

import asyncio
from functools import wraps

import click

from ..config import Settings
from ..container import ServiceContainer
from ..errors import HevyCoachError


def async_command(f):
    """Decorator to run async Click commands.

    Application errors are reported on stderr and exit with status 1.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return asyncio.run(f(*args, **kwargs))
        except HevyCoachError as e:
            echo_error(e.message)
            if e.details:
                click.echo(f"  {e.details}", err=True)
            raise click.exceptions.Exit(1) from e

    return wrapper


def get_settings_obj(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def get_user(ctx: click.Context) -> str:
    return ctx.obj["user"]


def open_services(ctx: click.Context) -> ServiceContainer:
    """Services for one command; use with ``async with``."""
    return ServiceContainer(get_settings_obj(ctx))


def ensure_initialized(ctx: click.Context) -> None:
    """Ensure the database is initialized."""
    db_path = get_settings_obj(ctx).db_path
    if not db_path.exists():
        echo_error("Project not initialized. Run 'hevy-coach init' first.")
        ctx.exit(1)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message, err=True)


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

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = ["".join(h.ljust(widths[i] + padding) for i, h in enumerate(headers))]
    lines.append("".join("-" * w + " " * padding for w in widths))
    for row in rows:
        lines.append("".join(str(cell).ljust(widths[i] + padding) for i, cell in enumerate(row)))

    return "\n".join(line.rstrip() for line in lines)
