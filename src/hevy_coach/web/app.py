"""FastAPI application for the hevy-coach API."""

from contextlib import asynccontextmanager

import httpx
import openai
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, get_settings
from ..container import ServiceContainer
from ..db.engine import init_db
from ..errors import HevyCoachError
from .routers import ai, debug, profile, sync
from .sync_tasks import SyncTaskRunner

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    hevy_transport: httpx.AsyncBaseTransport | None = None,
    openai_client: openai.AsyncOpenAI | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``hevy_transport`` and ``openai_client`` replace the outbound clients,
    which is how tests run the API without network access.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the schema on startup, stop background syncs on shutdown."""
        await init_db(app.state.services.db_path)
        yield
        await app.state.sync_tasks.shutdown()
        await app.state.services.aclose()

    app = FastAPI(
        title="hevy-coach",
        description="Hevy workout sync and AI routine generation",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.services = ServiceContainer(
        settings, hevy_transport=hevy_transport, openai_client=openai_client
    )
    app.state.sync_tasks = SyncTaskRunner()

    @app.exception_handler(HevyCoachError)
    async def handle_app_error(request: Request, exc: HevyCoachError):
        if exc.status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                error_type=exc.__class__.__name__,
                error=exc.message,
                details=exc.details,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(include_details=not settings.is_production),
        )

    app.include_router(profile.router)
    app.include_router(sync.router)
    app.include_router(ai.router)
    app.include_router(debug.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
