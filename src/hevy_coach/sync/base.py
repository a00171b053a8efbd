"""Shared pagination-and-upsert loop for the per-resource syncs.

A run inserts its status row (the claim), loads the Hevy ids already cached,
then walks the resource's pages. Items not yet cached are synced one at a
time; a failing item is recorded and skipped, a failing page stops the walk.
Either way the status row is finalized exactly once.
"""

import asyncio
from abc import ABC, abstractmethod

import structlog

from ..clients.hevy import HevyClient
from ..db.repositories import SyncStatusRepository
from ..errors import HevyApiError
from ..models.sync import SyncResult, SyncState, SyncStatus, SyncType

logger = structlog.get_logger(__name__)

INTERRUPTED_MESSAGE = "Sync interrupted"


class ResourceSync(ABC):
    """Base class for syncing one Hevy resource into its local cache."""

    sync_type: SyncType
    resource_name: str  # used in "Failed to sync N <resource_name>"
    status_types: tuple[SyncType, ...] = ()
    skip_cached = True

    def __init__(
        self,
        user_id: str,
        hevy: HevyClient,
        repository,
        status_repo: SyncStatusRepository,
        page_delay: float = 0.1,
    ):
        self.user_id = user_id
        self.hevy = hevy
        self.repository = repository
        self.status_repo = status_repo
        self.page_delay = page_delay

    @abstractmethod
    async def fetch_page(self, page: int, status: SyncStatus) -> tuple[list[dict], bool]:
        """Fetch one page. Returns the items and whether another page follows."""

    @abstractmethod
    async def sync_item(self, item: dict) -> None:
        """Fetch detail if needed and upsert a single item."""

    def item_id(self, item: dict) -> str:
        return str(item["id"])

    def final_total(self, result: SyncResult) -> int | None:
        return result.synced + result.failed

    async def prepare(self) -> None:
        """Load whatever the run needs before paginating."""

    async def run(self, parent_id: int | None = None) -> SyncResult:
        """Run the sync. ``parent_id`` links the row to an enclosing full sync.

        Raises:
            SyncInProgressError: A top-level run for this user is already active.
        """
        status = await self.status_repo.claim(self.user_id, self.sync_type, parent_id)
        log = logger.bind(
            user_id=self.user_id, sync_type=self.sync_type.value, sync_id=status.id
        )
        log.info("sync_started")
        result = SyncResult()

        try:
            await self.prepare()
            existing = (
                await self.repository.existing_ids(self.user_id)
                if self.skip_cached
                else set()
            )
            page_error = await self._walk_pages(status, existing, result, log)
        except asyncio.CancelledError:
            log.warning("sync_interrupted", synced=result.synced)
            await self.status_repo.finalize(
                status.id,
                SyncState.FAILED,
                items_synced=result.synced,
                error_message=INTERRUPTED_MESSAGE,
                metadata=[err.to_dict() for err in result.errors] or None,
            )
            raise
        except Exception as e:
            log.error("sync_failed", error=str(e))
            await self.status_repo.finalize(
                status.id,
                SyncState.FAILED,
                items_synced=result.synced,
                error_message=str(e),
                metadata=[err.to_dict() for err in result.errors] or None,
            )
            raise

        messages = []
        if result.failed:
            messages.append(f"Failed to sync {result.failed} {self.resource_name}")
        if page_error:
            messages.append(page_error)
        await self.status_repo.finalize(
            status.id,
            result.state,
            items_synced=result.synced,
            total_items=self.final_total(result),
            error_message="; ".join(messages) or None,
            metadata=[err.to_dict() for err in result.errors] or None,
        )
        log.info(
            "sync_finished",
            status=result.state.value,
            synced=result.synced,
            failed=result.failed,
        )
        return result

    async def _walk_pages(
        self, status: SyncStatus, existing: set[str], result: SyncResult, log
    ) -> str | None:
        """Paginate until the resource says stop. Returns a page error, if any."""
        page = 1
        while True:
            try:
                items, has_more = await self.fetch_page(page, status)
            except HevyApiError as e:
                log.warning("sync_page_failed", page=page, error=e.message)
                result.aborted = True
                return f"Stopped at page {page}: {e.message}"

            for item in items:
                item_id = self.item_id(item)
                if item_id in existing:
                    continue
                try:
                    await self.sync_item(item)
                except Exception as e:
                    log.warning("sync_item_failed", item_id=item_id, error=str(e))
                    result.record_failure(item_id, str(e) or e.__class__.__name__)
                    continue
                existing.add(item_id)
                result.synced += 1
                await self.status_repo.update_progress(
                    status.id, items_synced=result.synced
                )

            if not has_more:
                return None
            page += 1
            await asyncio.sleep(self.page_delay)

    async def status(self) -> dict:
        """Latest run, cached row count and last sync time for this resource."""
        latest = await self.status_repo.latest(
            self.user_id, list(self.status_types or (self.sync_type,))
        )
        last_synced = await self.repository.last_synced_at(self.user_id)
        return {
            "latest_sync": latest.to_dict() if latest else None,
            "total_cached": await self.repository.count(self.user_id),
            "last_synced_at": last_synced.isoformat() if last_synced else None,
        }
