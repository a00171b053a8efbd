"""Hevy sync commands."""

import click

from ..models.sync import SyncResult
from .base import (
    async_command,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    get_user,
    open_services,
)

RESOURCES = ["all", "exercises", "routine-folders", "routines", "workouts"]


def _report(name: str, result: SyncResult) -> None:
    if result.failed or result.aborted:
        echo_warning(f"{name}: {result.synced} synced, {result.failed} failed")
        for error in result.errors[:10]:
            click.echo(f"    {error.id}: {error.error}")
        if result.aborted:
            click.echo("    Stopped early: a page could not be fetched")
    else:
        echo_success(f"{name}: {result.synced} synced")


@click.command()
@click.argument("resource", type=click.Choice(RESOURCES), default="all")
@click.option(
    "--incremental",
    is_flag=True,
    help="Workouts only: fetch days with activity since the last sync",
)
@click.pass_context
@async_command
async def sync(ctx, resource: str, incremental: bool):
    """Pull data from Hevy into the local cache.

    Examples:

        # Everything, in dependency order
        hevy-coach sync

        # Only recent workouts
        hevy-coach sync workouts --incremental
    """
    ensure_initialized(ctx)
    user_id = get_user(ctx)

    async with open_services(ctx) as services:
        service = services.sync_service(user_id)
        if resource == "all":
            echo_info("Running full sync")
            result = await service.full_sync()
            for name, stage in result.stages().items():
                _report(name, stage)
            click.echo()
            click.echo(
                f"Total: {result.total_synced} synced, {result.total_failed} failed "
                f"in {result.duration_ms / 1000:.1f}s"
            )
            return

        if resource == "exercises":
            stage = await service.sync_exercises()
        elif resource == "routine-folders":
            stage = await service.sync_routine_folders()
        elif resource == "routines":
            stage = await service.sync_routines()
        else:
            stage = await service.sync_workouts(incremental=incremental)
        _report(resource, stage)


@click.command(name="sync-status")
@click.pass_context
@async_command
async def sync_status(ctx):
    """Show cached counts, last sync times and recent runs."""
    ensure_initialized(ctx)
    user_id = get_user(ctx)
    async with open_services(ctx) as services:
        status = await services.sync_service(user_id).get_overall_status()

    rows = []
    for name in ("exercises", "routine_folders", "routines", "workouts"):
        resource = status[name]
        latest = resource["latest_sync"]
        rows.append([
            name,
            str(resource["total_cached"]),
            (resource["last_synced_at"] or "never")[:19],
            latest["status"] if latest else "-",
        ])
    click.echo()
    click.echo(format_table(["Resource", "Cached", "Last synced", "Last run"], rows))
    click.echo()

    if status["is_sync_in_progress"]:
        echo_info("A sync is currently running")
    if status["is_stale"]:
        echo_warning(status["recommendation"])
    else:
        echo_success(status["recommendation"])

    recent = status["recent_syncs"]
    if recent:
        click.echo()
        click.echo("Recent runs:")
        run_rows = [
            [
                str(run["id"]),
                run["sync_type"],
                run["status"],
                str(run["items_synced"]),
                (run["started_at"] or "")[:19],
            ]
            for run in recent
        ]
        click.echo(format_table(["ID", "Type", "Status", "Items", "Started"], run_rows))


@click.command(name="sync-cleanup")
@click.pass_context
@async_command
async def sync_cleanup(ctx):
    """Mark runs left pending or in progress as failed."""
    ensure_initialized(ctx)
    user_id = get_user(ctx)
    async with open_services(ctx) as services:
        count = await services.sync_service(user_id).cleanup_interrupted()
    if count:
        echo_success(f"Marked {count} interrupted run(s) as failed")
    else:
        echo_info("No interrupted runs found")
