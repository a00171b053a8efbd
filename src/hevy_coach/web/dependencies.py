"""Request dependencies shared by the routers."""

from fastapi import Header, Request

from ..container import ServiceContainer
from ..errors import AuthorizationError
from .sync_tasks import SyncTaskRunner

USER_HEADER = "X-User-Id"


async def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """The authenticated user, as established by the fronting auth proxy."""
    if not x_user_id or not x_user_id.strip():
        raise AuthorizationError("Unauthorized")
    return x_user_id.strip()


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_sync_tasks(request: Request) -> SyncTaskRunner:
    return request.app.state.sync_tasks
