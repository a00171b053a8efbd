"""User profile routes."""

from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...container import ServiceContainer
from ...models.user_profile import COMMON_INJURIES, FOCUS_AREAS, ExperienceLevel, UserProfile
from ..dependencies import get_services, get_user_id

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfilePayload(BaseModel):
    """Editable profile fields. Range checks happen in the profile service."""

    age: int | None = None
    birth_date: date | None = None
    weight: float | None = None
    training_frequency: int | None = None
    experience_level: ExperienceLevel | None = None
    focus_areas: list[str] = Field(default_factory=list)
    injuries: list[str] = Field(default_factory=list)
    injury_details: str | None = None
    other_activities: str | None = None


def _profile_body(profile: UserProfile) -> dict:
    return {
        "id": profile.id,
        **profile.to_dict(),
        "effective_age": profile.effective_age,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }


@router.get("")
async def get_profile(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """The caller's training profile."""
    profile = await services.profiles.get(user_id)
    return {"profile": _profile_body(profile)}


@router.put("")
async def save_profile(
    payload: ProfilePayload,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Create or replace the caller's training profile."""
    data = payload.model_dump(mode="json")
    profile = await services.profiles.save(user_id, data)
    return {"success": True, "profile": _profile_body(profile)}


@router.post("/bootstrap")
async def bootstrap_profile(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_services),
):
    """Create the placeholder profile for a newly confirmed account."""
    profile, created = await services.profiles.bootstrap(user_id)
    return JSONResponse(
        status_code=201 if created else 200,
        content={"created": created, "profile": _profile_body(profile)},
    )


@router.get("/options")
async def profile_options():
    """Vocabularies the profile form offers."""
    return {
        "experience_levels": [level.value for level in ExperienceLevel],
        "focus_areas": FOCUS_AREAS,
        "injuries": COMMON_INJURIES,
    }
