"""Hevy sync routes."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...container import ServiceContainer
from ...models.sync import SyncResult
from ..dependencies import get_services, get_sync_tasks, get_user_id
from ..sync_tasks import SyncTaskRunner

router = APIRouter(prefix="/sync", tags=["sync"])


class WorkoutSyncRequest(BaseModel):
    sync_type: Literal["full", "incremental"] = "full"


def _result_body(result: SyncResult, message: str) -> dict:
    return {"success": True, "message": message, **result.to_dict()}


@router.post("/exercises")
async def sync_exercises(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    result = await services.sync_service(user_id).sync_exercises()
    return _result_body(result, f"Synced {result.synced} exercises")


@router.post("/routine-folders")
async def sync_routine_folders(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    result = await services.sync_service(user_id).sync_routine_folders()
    return _result_body(result, f"Synced {result.synced} routine folders")


@router.post("/routines")
async def sync_routines(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    result = await services.sync_service(user_id).sync_routines()
    return _result_body(result, f"Synced {result.synced} routines")


@router.post("/workouts")
async def sync_workouts(
    body: WorkoutSyncRequest | None = None,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Full or incremental workout sync; full when no body is sent."""
    incremental = body is not None and body.sync_type == "incremental"
    result = await services.sync_service(user_id).sync_workouts(incremental=incremental)
    return _result_body(result, f"Synced {result.synced} workouts")


@router.post("/full", status_code=202)
async def start_full_sync(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
    sync_tasks: SyncTaskRunner = Depends(get_sync_tasks),
):
    """Start a full sync in the background.

    The run is claimed before responding, so a sync already in progress
    answers 409 rather than starting a task that would fail.
    """
    sync_service = services.sync_service(user_id)
    master = await sync_service.claim_full_sync()
    task = await sync_tasks.start(
        user_id, master.id, lambda: sync_service.run_full_sync(master)
    )
    return {
        "success": True,
        "message": "Full sync started",
        "sync_id": master.id,
        "task": task.to_dict(),
    }


@router.get("/status")
async def sync_status(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
    sync_tasks: SyncTaskRunner = Depends(get_sync_tasks),
):
    """Cached counts, staleness, recent runs and the latest background task."""
    status = await services.sync_service(user_id).get_overall_status()
    task = await sync_tasks.latest_for_user(user_id)
    status["background_task"] = task.to_dict() if task else None
    return status


@router.post("/cleanup")
async def cleanup_interrupted(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Mark runs left pending or in progress as failed."""
    count = await services.sync_service(user_id).cleanup_interrupted()
    return {"success": True, "cleaned": count}
