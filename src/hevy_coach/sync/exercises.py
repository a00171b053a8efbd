"""Exercise template sync."""

import structlog

from ..errors import HevyApiError
from ..models.hevy import ImportedExerciseTemplate
from ..models.sync import SyncStatus, SyncType
from .base import ResourceSync

logger = structlog.get_logger(__name__)


class ExerciseSync(ResourceSync):
    """Pulls the user's exercise library (built-in and custom templates).

    The page count comes from the first response.
    """

    sync_type = SyncType.EXERCISES
    resource_name = "exercises"
    page_size = 100

    _page_count = 1

    async def fetch_page(self, page: int, status: SyncStatus) -> tuple[list[dict], bool]:
        response = await self.hevy.list_exercise_templates(
            page=page, page_size=self.page_size
        )
        if page == 1:
            self._page_count = response.get("page_count") or 1
        return response.get("exercise_templates") or [], page < self._page_count

    async def sync_item(self, item: dict) -> None:
        template = item
        if not item.get("primary_muscle_group"):
            # List entries are normally complete; fall back to the list payload
            try:
                template = await self.hevy.get_exercise_template(str(item["id"]))
            except HevyApiError as e:
                logger.info(
                    "exercise_detail_unavailable", exercise_id=item["id"], error=e.message
                )
        await self.repository.upsert(
            ImportedExerciseTemplate.from_payload(self.user_id, template)
        )
