"""Routine sync."""

from ..clients.hevy import HevyClient
from ..db.repositories import RoutineFolderRepository, RoutineRepository, SyncStatusRepository
from ..models.hevy import ImportedRoutine
from ..models.sync import SyncStatus, SyncType
from .base import ResourceSync


class RoutineSync(ResourceSync):
    """Pulls saved routines, 20 per page, until a short page.

    Routines are linked to their folder only when that folder is cached;
    otherwise the folder reference is stored as null.
    """

    sync_type = SyncType.ROUTINES
    resource_name = "routines"
    page_size = 20

    def __init__(
        self,
        user_id: str,
        hevy: HevyClient,
        repository: RoutineRepository,
        status_repo: SyncStatusRepository,
        folder_repo: RoutineFolderRepository,
        page_delay: float = 0.1,
    ):
        super().__init__(user_id, hevy, repository, status_repo, page_delay)
        self.folder_repo = folder_repo
        self._folder_ids: set[str] = set()

    async def prepare(self) -> None:
        self._folder_ids = await self.folder_repo.existing_ids(self.user_id)

    async def fetch_page(self, page: int, status: SyncStatus) -> tuple[list[dict], bool]:
        response = await self.hevy.list_routines(page=page, page_size=self.page_size)
        routines = response.get("routines") or []
        return routines, len(routines) == self.page_size

    async def sync_item(self, item: dict) -> None:
        routine = await self.hevy.get_routine(str(item["id"]))
        folder_id = routine.get("folder_id")
        folder_id = str(folder_id) if folder_id is not None else None
        if folder_id not in self._folder_ids:
            folder_id = None
        await self.repository.upsert(
            ImportedRoutine.from_payload(self.user_id, routine, folder_id=folder_id)
        )
