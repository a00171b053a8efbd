"""Sync run records and results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SyncType(str, Enum):
    """What a sync run pulls from Hevy."""

    EXERCISES = "exercises"
    ROUTINES = "routines"
    ROUTINE_FOLDERS = "routine_folders"
    WORKOUTS = "workouts"
    WORKOUTS_INCREMENTAL = "workouts_incremental"
    FULL = "full"


class SyncState(str, Enum):
    """Lifecycle of a sync run."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        return self in (SyncState.PENDING, SyncState.IN_PROGRESS)


@dataclass
class SyncStatus:
    """One row of the append-only sync log.

    Top-level runs have ``parent_id`` None; the stages of a full sync point at
    the full run's row.
    """

    user_id: str
    sync_type: SyncType
    status: SyncState = SyncState.IN_PROGRESS
    started_at: datetime | None = None
    completed_at: datetime | None = None
    items_synced: int = 0
    total_items: int | None = None
    error_message: str | None = None
    metadata: dict | list | None = None
    parent_id: int | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sync_type": self.sync_type.value,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "items_synced": self.items_synced,
            "total_items": self.total_items,
            "error_message": self.error_message,
            "metadata": self.metadata,
            "parent_id": self.parent_id,
        }


@dataclass
class SyncItemError:
    """A single item that failed to sync."""

    id: str
    error: str

    def to_dict(self) -> dict:
        return {"id": self.id, "error": self.error}


@dataclass
class SyncResult:
    """Outcome of one per-resource sync run."""

    synced: int = 0
    failed: int = 0
    errors: list[SyncItemError] = field(default_factory=list)
    aborted: bool = False  # a page fetch failed and pagination stopped early

    def record_failure(self, item_id: str, error: str) -> None:
        self.failed += 1
        self.errors.append(SyncItemError(id=item_id, error=error))

    @property
    def state(self) -> SyncState:
        if self.failed or self.aborted:
            return SyncState.COMPLETED_WITH_ERRORS
        return SyncState.COMPLETED

    def to_dict(self) -> dict:
        return {
            "synced": self.synced,
            "failed": self.failed,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class FullSyncResult:
    """Combined outcome of a full sync, in stage order."""

    exercises: SyncResult = field(default_factory=SyncResult)
    routine_folders: SyncResult = field(default_factory=SyncResult)
    routines: SyncResult = field(default_factory=SyncResult)
    workouts: SyncResult = field(default_factory=SyncResult)
    duration_ms: int = 0

    def stages(self) -> dict[str, SyncResult]:
        return {
            "exercises": self.exercises,
            "routine_folders": self.routine_folders,
            "routines": self.routines,
            "workouts": self.workouts,
        }

    @property
    def total_synced(self) -> int:
        return sum(r.synced for r in self.stages().values())

    @property
    def total_failed(self) -> int:
        return sum(r.failed for r in self.stages().values())

    def to_dict(self) -> dict:
        data = {
            name: {"synced": r.synced, "failed": r.failed}
            for name, r in self.stages().items()
        }
        data.update(
            {
                "total_synced": self.total_synced,
                "total_failed": self.total_failed,
                "duration_ms": self.duration_ms,
            }
        )
        return data
