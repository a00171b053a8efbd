"""Routine folder sync."""

from ..models.hevy import ImportedRoutineFolder
from ..models.sync import SyncStatus, SyncType
from .base import ResourceSync


class RoutineFolderSync(ResourceSync):
    """Pulls routine folders; the page count comes from the first response."""

    sync_type = SyncType.ROUTINE_FOLDERS
    resource_name = "folders"
    page_size = 10

    _page_count = 1

    async def fetch_page(self, page: int, status: SyncStatus) -> tuple[list[dict], bool]:
        response = await self.hevy.list_routine_folders(page=page, page_size=self.page_size)
        if page == 1:
            self._page_count = response.get("page_count") or 1
        return response.get("routine_folders") or [], page < self._page_count

    async def sync_item(self, item: dict) -> None:
        folder = await self.hevy.get_routine_folder(str(item["id"]))
        folder = folder.get("routine_folder", folder)
        await self.repository.upsert(
            ImportedRoutineFolder.from_payload(self.user_id, folder or item)
        )
