"""Training profile management."""

from pathlib import Path

import structlog

from ..db.repositories import UserProfileRepository
from ..errors import NotFoundError, ValidationError
from ..models.user_profile import (
    FOCUS_AREAS,
    MAX_AGE_YEARS,
    MIN_AGE_YEARS,
    UserProfile,
    is_valid_birth_date,
)

logger = structlog.get_logger(__name__)


def validate_profile(profile: UserProfile) -> None:
    """Raise ``ValidationError`` for values the profile form would not accept."""
    if profile.age is not None and not MIN_AGE_YEARS <= profile.age <= MAX_AGE_YEARS:
        raise ValidationError(f"Age must be between {MIN_AGE_YEARS} and {MAX_AGE_YEARS}")
    if profile.birth_date is not None and not is_valid_birth_date(profile.birth_date):
        raise ValidationError(
            f"Birth date must be between {MIN_AGE_YEARS} and {MAX_AGE_YEARS} years ago"
        )
    if profile.weight is not None and profile.weight <= 0:
        raise ValidationError("Weight must be positive")
    if profile.training_frequency is not None and not 1 <= profile.training_frequency <= 7:
        raise ValidationError("Training frequency must be between 1 and 7 days per week")
    unknown = [area for area in profile.focus_areas if area not in FOCUS_AREAS]
    if unknown:
        raise ValidationError(f"Unknown focus areas: {', '.join(unknown)}")


class ProfileService:
    def __init__(self, db_path: Path | None = None):
        self.repo = UserProfileRepository(db_path)

    async def get(self, user_id: str) -> UserProfile:
        profile = await self.repo.get(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def save(self, user_id: str, data: dict) -> UserProfile:
        """Create or replace the user's profile from submitted fields."""
        try:
            profile = UserProfile.from_dict({**data, "user_id": user_id})
        except ValueError as e:
            raise ValidationError(str(e)) from e
        validate_profile(profile)
        saved = await self.repo.upsert(profile)
        logger.info("profile_saved", user_id=user_id)
        return saved

    async def bootstrap(self, user_id: str) -> tuple[UserProfile, bool]:
        """Create the placeholder profile for a newly confirmed account.

        Returns the profile and whether it was created.
        """
        profile, created = await self.repo.create_if_missing(UserProfile.placeholder(user_id))
        if created:
            logger.info("profile_bootstrapped", user_id=user_id)
        return profile, created
