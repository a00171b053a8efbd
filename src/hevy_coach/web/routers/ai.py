"""Program generation, history and export routes."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...container import ServiceContainer
from ...errors import ForbiddenError, NotFoundError
from ...models.routine import GenerationRequest
from ..dependencies import get_services, get_user_id

router = APIRouter(prefix="/ai", tags=["ai"])


class GenerateRoutinePayload(BaseModel):
    """Generation parameters.

    Numbers are unbounded here; the generator rejects
    out-of-range values with a 400 and a readable message.
    """

    workouts_per_week: int | None = None
    session_duration: int | None = None
    duration: int = 4
    focus_area: str | None = None
    split_type: str | None = None
    special_instructions: str | None = None
    progression_type: str = "linear"
    expand_weeks: bool = False


class ExportPayload(BaseModel):
    routine_id: int
    routine_index: int = 0


@router.post("/generate-routine")
async def generate_routine(
    payload: GenerateRoutinePayload,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Generate a program from the caller's profile and synced history."""
    request = GenerationRequest.from_dict(payload.model_dump())
    generated = await services.generator.generate(user_id, request)
    return {
        "success": True,
        "routine_id": generated.id,
        "routines": [routine.to_dict() for routine in generated.routines],
        "reasoning": generated.reasoning,
        "periodization_notes": generated.periodization_notes,
        "metadata": generated.metadata,
    }


@router.get("/routines")
async def list_routines(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Generation history, newest first."""
    generated = await services.generated_routines.list_for_user(user_id)
    items = [g.history_item() for g in generated]
    return {"routines": items, "total": len(items)}


@router.get("/routines/{routine_id}")
async def get_routine(
    routine_id: int,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    generated = await services.generated_routines.get(routine_id)
    if generated is None:
        raise NotFoundError("Routine not found")
    if generated.user_id != user_id:
        raise ForbiddenError("You do not have access to this routine")
    return generated.to_dict()


@router.post("/export-routine")
async def export_routine(
    payload: ExportPayload,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Create one routine of a generation result in Hevy."""
    return await services.exports.export(user_id, payload.routine_id, payload.routine_index)


@router.get("/export-routine")
async def export_status(
    routine_id: int = Query(...),
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    return await services.exports.export_status(user_id, routine_id)
