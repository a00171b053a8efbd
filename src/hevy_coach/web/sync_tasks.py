"""Background execution of full syncs started over HTTP."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable
from uuid import uuid4

import structlog

from ..models.sync import FullSyncResult
from ..sync.base import INTERRUPTED_MESSAGE

logger = structlog.get_logger(__name__)


class SyncTaskStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SyncTask:
    """A full sync running outside the request that started it."""
    id: str
    user_id: str
    sync_id: int
    status: SyncTaskStatus = SyncTaskStatus.PENDING
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result: dict | None = None
    error: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in (SyncTaskStatus.COMPLETED, SyncTaskStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sync_id": self.sync_id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "result": self.result,
            "error": self.error,
        }


class SyncTaskRunner:
    """Tracks running and recent background syncs.

    Durable state lives in the ``sync_status`` table; this only keeps the
    asyncio handles alive and remembers recent outcomes per process.
    """

    def __init__(self, max_finished_tasks: int = 20):
        self._tasks: dict[str, SyncTask] = {}
        self._handles: dict[str, asyncio.Task] = {}
        self._max_finished = max_finished_tasks
        self._lock = asyncio.Lock()

    async def start(
        self,
        user_id: str,
        sync_id: int,
        run: Callable[[], Awaitable[FullSyncResult]],
    ) -> SyncTask:
        """Schedule ``run`` on the event loop and return its tracking record."""
        async with self._lock:
            task = SyncTask(
                id=str(uuid4())[:8],
                user_id=user_id,
                sync_id=sync_id,
                created_at=datetime.now(timezone.utc),
            )
            self._tasks[task.id] = task
            self._cleanup_finished()
            self._handles[task.id] = asyncio.create_task(self._execute(task, run))
        return task

    async def get(self, task_id: str) -> SyncTask | None:
        return self._tasks.get(task_id)

    async def latest_for_user(self, user_id: str) -> SyncTask | None:
        tasks = [t for t in self._tasks.values() if t.user_id == user_id]
        # insertion order is start order
        return tasks[-1] if tasks else None

    async def wait(self, task_id: str) -> SyncTask | None:
        """Wait for a task to finish. Used by tests and on shutdown."""
        handle = self._handles.get(task_id)
        if handle is not None:
            await asyncio.wait([handle])
        return self._tasks.get(task_id)

    async def shutdown(self) -> None:
        """Cancel syncs still running.

        A cancelled sync marks its own status rows failed as interrupted, so
        the user can sync again after a restart.
        """
        handles = list(self._handles.values())
        # let tasks scheduled but not yet started reach their sync loop
        await asyncio.sleep(0)
        for handle in handles:
            handle.cancel()
        if handles:
            await asyncio.wait(handles)

    async def _execute(
        self, task: SyncTask, run: Callable[[], Awaitable[FullSyncResult]]
    ) -> None:
        log = logger.bind(task_id=task.id, user_id=task.user_id, sync_id=task.sync_id)
        task.status = SyncTaskStatus.RUNNING
        task.started_at = datetime.now(timezone.utc)
        try:
            result = await run()
        except asyncio.CancelledError:
            log.warning("background_sync_interrupted")
            task.status = SyncTaskStatus.FAILED
            task.error = INTERRUPTED_MESSAGE
            raise
        except Exception as e:
            # The sync itself has already marked its status row failed
            log.exception("background_sync_failed")
            task.status = SyncTaskStatus.FAILED
            task.error = str(e) or e.__class__.__name__
        else:
            task.status = SyncTaskStatus.COMPLETED
            task.result = result.to_dict()
            log.info("background_sync_completed", synced=result.total_synced)
        finally:
            task.completed_at = datetime.now(timezone.utc)
            self._handles.pop(task.id, None)

    def _cleanup_finished(self) -> None:
        """Remove the oldest finished tasks over the limit."""
        finished = [t for t in self._tasks.values() if t.is_finished]
        if len(finished) > self._max_finished:
            finished.sort(key=lambda t: t.completed_at)
            for task in finished[: -self._max_finished]:
                del self._tasks[task.id]
