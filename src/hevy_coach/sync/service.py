"""Orchestrates the per-resource syncs for one user."""

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path

import structlog

from ..clients.hevy import HevyClient
from ..db.repositories import (
    ExerciseTemplateRepository,
    RoutineFolderRepository,
    RoutineRepository,
    SyncStatusRepository,
    WorkoutRepository,
)
from ..models.sync import FullSyncResult, SyncResult, SyncState, SyncStatus, SyncType
from .base import INTERRUPTED_MESSAGE
from .exercises import ExerciseSync
from .routine_folders import RoutineFolderSync
from .routines import RoutineSync
from .workouts import IncrementalWorkoutSync, WorkoutSync

logger = structlog.get_logger(__name__)

STALE_AFTER_DAYS = 7


class HevySyncService:
    """Runs exercise, folder, routine and workout syncs for a user.

    Stages of a full sync run in dependency order: exercises, routine
    folders, routines, workouts.
    """

    def __init__(
        self,
        user_id: str,
        hevy: HevyClient,
        db_path: Path | None = None,
        page_delay: float = 0.1,
    ):
        self.user_id = user_id
        self.status_repo = SyncStatusRepository(db_path)
        self.exercise_repo = ExerciseTemplateRepository(db_path)
        self.folder_repo = RoutineFolderRepository(db_path)
        self.routine_repo = RoutineRepository(db_path)
        self.workout_repo = WorkoutRepository(db_path)

        common = {"status_repo": self.status_repo, "page_delay": page_delay}
        self.exercise_sync = ExerciseSync(user_id, hevy, self.exercise_repo, **common)
        self.folder_sync = RoutineFolderSync(user_id, hevy, self.folder_repo, **common)
        self.routine_sync = RoutineSync(
            user_id, hevy, self.routine_repo, folder_repo=self.folder_repo, **common
        )
        self.workout_sync = WorkoutSync(user_id, hevy, self.workout_repo, **common)
        self.incremental_workout_sync = IncrementalWorkoutSync(
            user_id, hevy, self.workout_repo, **common
        )

    async def sync_exercises(self) -> SyncResult:
        return await self.exercise_sync.run()

    async def sync_routine_folders(self) -> SyncResult:
        return await self.folder_sync.run()

    async def sync_routines(self) -> SyncResult:
        return await self.routine_sync.run()

    async def sync_workouts(self, incremental: bool = False) -> SyncResult:
        if incremental:
            return await self.incremental_workout_sync.run()
        return await self.workout_sync.run()

    async def incremental_sync(self) -> dict[str, SyncResult]:
        """Only workouts support incremental sync."""
        return {"workouts": await self.sync_workouts(incremental=True)}

    async def full_sync(self) -> FullSyncResult:
        """Sync everything under one ``full`` run.

        Raises:
            SyncInProgressError: A sync is already running for this user.
        """
        master = await self.claim_full_sync()
        return await self.run_full_sync(master)

    async def claim_full_sync(self) -> SyncStatus:
        """Reserve the user's sync slot for a full run without starting it."""
        return await self.status_repo.claim(self.user_id, SyncType.FULL)

    async def run_full_sync(self, master: SyncStatus) -> FullSyncResult:
        """Run every stage under an already claimed ``full`` run.

        If a stage raises, the full run is marked failed and the error
        propagates; stage rows keep whatever state they reached. A cancelled
        run marks both the current stage and the full run as interrupted.
        """
        log = logger.bind(user_id=self.user_id, sync_id=master.id)
        log.info("full_sync_started")
        started = time.monotonic()
        result = FullSyncResult()

        try:
            result.exercises = await self.exercise_sync.run(parent_id=master.id)
            result.routine_folders = await self.folder_sync.run(parent_id=master.id)
            result.routines = await self.routine_sync.run(parent_id=master.id)
            result.workouts = await self.workout_sync.run(parent_id=master.id)
        except asyncio.CancelledError:
            log.warning("full_sync_interrupted")
            await self.status_repo.finalize(
                master.id,
                SyncState.FAILED,
                items_synced=result.total_synced,
                error_message=INTERRUPTED_MESSAGE,
                metadata=result.to_dict(),
            )
            raise
        except Exception as e:
            log.error("full_sync_failed", error=str(e))
            await self.status_repo.finalize(
                master.id, SyncState.FAILED, error_message=str(e) or e.__class__.__name__
            )
            raise

        result.duration_ms = int((time.monotonic() - started) * 1000)
        clean = all(r.state is SyncState.COMPLETED for r in result.stages().values())
        await self.status_repo.finalize(
            master.id,
            SyncState.COMPLETED if clean else SyncState.COMPLETED_WITH_ERRORS,
            items_synced=result.total_synced,
            total_items=result.total_synced + result.total_failed,
            error_message=(
                f"Failed to sync {result.total_failed} items" if result.total_failed else None
            ),
            metadata=result.to_dict(),
        )
        log.info(
            "full_sync_finished",
            synced=result.total_synced,
            failed=result.total_failed,
            duration_ms=result.duration_ms,
        )
        return result

    async def is_sync_in_progress(self) -> bool:
        return await self.status_repo.has_active(self.user_id)

    async def cleanup_interrupted(self) -> int:
        """Force-fail runs left pending or in progress (e.g. after a crash)."""
        count = await self.status_repo.fail_active(self.user_id, INTERRUPTED_MESSAGE)
        if count:
            logger.warning("sync_runs_interrupted", user_id=self.user_id, count=count)
        return count

    async def get_overall_status(self) -> dict:
        """Per-resource status, staleness and recent runs."""
        workouts = await self.workout_sync.status()
        last_full = await self.status_repo.latest(self.user_id, [SyncType.FULL])
        recent = await self.status_repo.recent(self.user_id, limit=10)

        last_workout_sync = await self.workout_repo.last_synced_at(self.user_id)
        reference = last_workout_sync or datetime(1970, 1, 1, tzinfo=timezone.utc)
        days_since_sync = (datetime.now(timezone.utc) - reference).days
        is_stale = days_since_sync > STALE_AFTER_DAYS

        return {
            "workouts": workouts,
            "routines": await self.routine_sync.status(),
            "routine_folders": await self.folder_sync.status(),
            "exercises": await self.exercise_sync.status(),
            "last_full_sync": last_full.to_dict() if last_full else None,
            "recent_syncs": [run.to_dict() for run in recent],
            "is_sync_in_progress": await self.is_sync_in_progress(),
            "is_stale": is_stale,
            "days_since_sync": days_since_sync,
            "recommendation": (
                "Your data is more than 7 days old. Consider running a sync."
                if is_stale
                else "Your data is up to date."
            ),
        }
