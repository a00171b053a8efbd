"""Export of generated routines to Hevy."""

from pathlib import Path

import structlog

from ..clients.hevy import HevyClient
from ..db.repositories import GeneratedRoutineRepository
from ..errors import (
    ConflictError,
    ForbiddenError,
    HevyApiError,
    NotFoundError,
    ValidationError,
)
from ..generation.transformer import to_hevy_create_request
from ..models.routine import GeneratedRoutine

logger = structlog.get_logger(__name__)


class ExportService:
    """Sends one routine of a generation result to Hevy as a new routine.

    The exported flag and Hevy id on the stored result describe index 0 only.
    Other indices can be exported any number of times and are not recorded.
    """

    def __init__(self, hevy: HevyClient, db_path: Path | None = None):
        self.hevy = hevy
        self.repo = GeneratedRoutineRepository(db_path)

    async def _load(self, user_id: str, routine_id: int) -> GeneratedRoutine:
        generated = await self.repo.get(routine_id)
        if generated is None:
            raise NotFoundError("Routine not found")
        if generated.user_id != user_id:
            raise ForbiddenError("You do not have access to this routine")
        return generated

    async def export(self, user_id: str, routine_id: int, routine_index: int = 0) -> dict:
        """Create the selected routine in Hevy.

        The stored result is only updated after Hevy confirms the creation.

        Raises:
            NotFoundError: No such generation result.
            ForbiddenError: It belongs to another user.
            ValidationError: The index is out of range.
            ConflictError: Index 0 was already exported.
            HevyApiError: Hevy rejected the request.
        """
        generated = await self._load(user_id, routine_id)
        routines = generated.routines
        if not routines:
            raise ValidationError("No routines found in generated data")
        if not 0 <= routine_index < len(routines):
            raise ValidationError(
                f"Invalid routine index. Only {len(routines)} routines available."
            )
        if routine_index == 0 and generated.exported_to_hevy:
            raise ConflictError("Routine already exported to Hevy")

        routine = routines[routine_index]
        created = await self.hevy.create_routine(to_hevy_create_request(routine))
        hevy_routine_id = created.get("id")
        if hevy_routine_id is None:
            raise HevyApiError("Failed to create routine in Hevy")
        hevy_routine_id = str(hevy_routine_id)

        if routine_index == 0:
            await self.repo.mark_exported(routine_id, hevy_routine_id)
        logger.info(
            "routine_exported",
            user_id=user_id,
            routine_id=routine_id,
            routine_index=routine_index,
            hevy_routine_id=hevy_routine_id,
        )
        return {
            "success": True,
            "hevy_routine_id": hevy_routine_id,
            "routine_title": created.get("title") or routine.title,
            "routine_index": routine_index,
            "message": "Routine successfully exported to Hevy",
        }

    async def export_status(self, user_id: str, routine_id: int) -> dict:
        generated = await self._load(user_id, routine_id)
        return {
            "routine_id": generated.id,
            "exported": generated.exported_to_hevy,
            "hevy_routine_id": generated.hevy_routine_id,
            "created_at": generated.created_at.isoformat() if generated.created_at else None,
            "updated_at": generated.updated_at.isoformat() if generated.updated_at else None,
        }
