"""Web server command."""

import click
import uvicorn

from .base import ensure_initialized, get_settings_obj


@click.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", default=8000, type=int, help="Port to bind to (default: 8000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, reload: bool):
    """Start the API server.

    Requests must carry the caller's identity in the X-User-Id header,
    normally set by an authenticating proxy in front of the server.
    """
    ensure_initialized(ctx)

    from ..web import create_app

    click.echo()
    click.echo(click.style("Starting hevy-coach API server...", fg="green"))
    click.echo(f"  http://{host}:{port}")
    click.echo()

    uvicorn.run(
        create_app(get_settings_obj(ctx)) if not reload else "hevy_coach.web:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=reload,
        log_config=None,
    )
