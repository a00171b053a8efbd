"""Workout sync, full and incremental."""

import math
from datetime import date, datetime, timezone

from ..models.hevy import ImportedWorkout
from ..models.sync import SyncResult, SyncStatus, SyncType
from .base import ResourceSync

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class WorkoutSync(ResourceSync):
    """Pulls every workout.

    Hevy serves at most 10 workouts per page, so the page count is derived
    from the workout count endpoint. The count is recorded as the run's total.
    """

    sync_type = SyncType.WORKOUTS
    resource_name = "workouts"
    status_types = (SyncType.WORKOUTS, SyncType.WORKOUTS_INCREMENTAL)
    page_size = 10

    _total_pages = 0

    async def fetch_page(self, page: int, status: SyncStatus) -> tuple[list[dict], bool]:
        if page == 1:
            total = await self.hevy.get_workout_count()
            await self.status_repo.update_progress(status.id, total_items=total)
            self._total_pages = math.ceil(total / self.page_size)
            if self._total_pages == 0:
                return [], False
        response = await self.hevy.list_workouts(page=page, page_size=self.page_size)
        return response.get("workouts") or [], page < self._total_pages

    async def sync_item(self, item: dict) -> None:
        workout = await self.hevy.get_workout(str(item["id"]))
        await self.repository.upsert(ImportedWorkout.from_payload(self.user_id, workout))

    def final_total(self, result: SyncResult) -> int | None:
        return None  # keep the count reported by Hevy


class IncrementalWorkoutSync(WorkoutSync):
    """Re-syncs workouts on the dates Hevy reports changes since the last sync.

    Cached workouts are not skipped since they may have been edited. Each
    reported date is one "page": the first page of workouts is fetched and
    filtered to those starting on that date.
    """

    sync_type = SyncType.WORKOUTS_INCREMENTAL
    skip_cached = False

    async def prepare(self) -> None:
        self._dates = []

    async def fetch_page(self, page: int, status: SyncStatus) -> tuple[list[dict], bool]:
        if page == 1:
            since = await self.repository.last_synced_at(self.user_id) or EPOCH
            self._dates = await self.hevy.get_workout_dates(
                since.date().isoformat(), date.today().isoformat()
            )
            await self.status_repo.update_progress(status.id, total_items=len(self._dates))
        if not self._dates:
            return [], False

        day = self._dates[page - 1]
        response = await self.hevy.list_workouts(page=1, page_size=self.page_size)
        workouts = [
            w
            for w in response.get("workouts") or []
            if str(w.get("start_time", "")).startswith(day)
        ]
        return workouts, page < len(self._dates)
