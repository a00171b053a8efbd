"""Diagnostic routes for triaging logged failures."""

import math

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...container import ServiceContainer
from ...errors import NotFoundError
from ..dependencies import get_services, get_user_id

router = APIRouter(prefix="/debug", tags=["debug"])


class ResolvePayload(BaseModel):
    id: int
    is_resolved: bool


@router.get("/error-logs")
async def list_error_logs(
    type: str | None = None,
    resolved: bool | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Error logs, newest first, optionally filtered by type and resolution."""
    logs, total = await services.error_logs.list_logs(
        type=type, resolved=resolved, page=page, limit=limit
    )
    return {
        "success": True,
        "data": [log.to_dict() for log in logs],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


@router.patch("/error-logs")
async def resolve_error_log(
    payload: ResolvePayload,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Mark a logged error resolved or reopen it."""
    log = await services.error_logs.set_resolved(payload.id, payload.is_resolved)
    if log is None:
        raise NotFoundError("Error log not found")
    return {"success": True, "data": log.to_dict()}
