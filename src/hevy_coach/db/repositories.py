"""Data access layer for hevy-coach."""

import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from ..errors import SyncInProgressError
from ..models.error_log import ErrorLog
from ..models.hevy import (
    ImportedExerciseTemplate,
    ImportedRoutine,
    ImportedRoutineFolder,
    ImportedWorkout,
)
from ..models.routine import GeneratedRoutine, Routine
from ..models.sync import SyncState, SyncStatus, SyncType
from ..models.user_profile import UserProfile
from .engine import ACTIVE_SYNC_STATES, from_db_time, get_db_path, to_db_time, utcnow


class UserProfileRepository:
    """Repository for user profiles (one per user)."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def get(self, user_id: str) -> UserProfile | None:
        """Get the profile for a user."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM user_profiles WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_profile(row)

    async def upsert(self, profile: UserProfile) -> UserProfile:
        """Create the user's profile or replace its fields."""
        data = profile.to_dict()
        now = to_db_time(utcnow())
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO user_profiles
                (user_id, age, birth_date, weight, training_frequency, experience_level,
                 focus_areas, injuries, injury_details, other_activities,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    age = excluded.age,
                    birth_date = excluded.birth_date,
                    weight = excluded.weight,
                    training_frequency = excluded.training_frequency,
                    experience_level = excluded.experience_level,
                    focus_areas = excluded.focus_areas,
                    injuries = excluded.injuries,
                    injury_details = excluded.injury_details,
                    other_activities = excluded.other_activities,
                    updated_at = excluded.updated_at
                """,
                (
                    data["user_id"],
                    data["age"],
                    data["birth_date"],
                    data["weight"],
                    data["training_frequency"],
                    data["experience_level"],
                    json.dumps(data["focus_areas"]),
                    json.dumps(data["injuries"]),
                    data["injury_details"],
                    data["other_activities"],
                    now,
                    now,
                ),
            )
            await db.commit()
        return await self.get(profile.user_id)

    async def create_if_missing(self, profile: UserProfile) -> tuple[UserProfile, bool]:
        """Insert ``profile`` unless the user already has one.

        Returns the stored profile and whether it was created.
        """
        data = profile.to_dict()
        now = to_db_time(utcnow())
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO user_profiles
                (user_id, age, birth_date, weight, training_frequency, experience_level,
                 focus_areas, injuries, injury_details, other_activities,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO NOTHING
                """,
                (
                    data["user_id"],
                    data["age"],
                    data["birth_date"],
                    data["weight"],
                    data["training_frequency"],
                    data["experience_level"],
                    json.dumps(data["focus_areas"]),
                    json.dumps(data["injuries"]),
                    data["injury_details"],
                    data["other_activities"],
                    now,
                    now,
                ),
            )
            created = cursor.rowcount > 0
            await db.commit()
        return await self.get(profile.user_id), created

    def _row_to_profile(self, row: aiosqlite.Row) -> UserProfile:
        """Convert a database row to a UserProfile."""
        data = {
            "user_id": row["user_id"],
            "age": row["age"],
            "birth_date": row["birth_date"],
            "weight": row["weight"],
            "training_frequency": row["training_frequency"],
            "experience_level": row["experience_level"],
            "focus_areas": json.loads(row["focus_areas"] or "[]"),
            "injuries": json.loads(row["injuries"] or "[]"),
            "injury_details": row["injury_details"],
            "other_activities": row["other_activities"],
        }
        return UserProfile.from_dict(
            data,
            id=row["id"],
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )


class _ImportedRepository:
    """Shared queries for the per-user caches of Hevy resources.

    Subclasses name the table and its Hevy id column, and convert rows.
    """

    table: str
    id_column: str

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def existing_ids(self, user_id: str) -> set[str]:
        """Hevy ids already cached for the user."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"SELECT {self.id_column} FROM {self.table} WHERE user_id = ?",
                (user_id,),
            )
            return {row[0] for row in await cursor.fetchall()}

    async def count(self, user_id: str) -> int:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"SELECT COUNT(*) FROM {self.table} WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
            return row[0]

    async def last_synced_at(self, user_id: str) -> datetime | None:
        """Most recent ``last_synced_at`` among the user's cached rows."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"SELECT MAX(last_synced_at) FROM {self.table} WHERE user_id = ?",
                (user_id,),
            )
            row = await cursor.fetchone()
            return from_db_time(row[0])

    async def list_for_user(self, user_id: str) -> list:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT * FROM {self.table} WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
            return [self._row_to_record(row) for row in await cursor.fetchall()]

    async def _upsert(self, columns: dict) -> None:
        """Insert or update keyed by (user_id, Hevy id)."""
        now = to_db_time(utcnow())
        columns = {**columns, "imported_at": now, "last_synced_at": now}
        names = list(columns)
        updates = [
            f"{name} = excluded.{name}"
            for name in names
            if name not in ("user_id", self.id_column, "imported_at")
        ]
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"""
                INSERT INTO {self.table} ({", ".join(names)})
                VALUES ({", ".join("?" for _ in names)})
                ON CONFLICT (user_id, {self.id_column}) DO UPDATE SET
                    {", ".join(updates)}
                """,
                tuple(columns.values()),
            )
            await db.commit()

    def _row_to_record(self, row: aiosqlite.Row):
        raise NotImplementedError


class ExerciseTemplateRepository(_ImportedRepository):
    """Repository for cached exercise templates."""

    table = "imported_exercise_templates"
    id_column = "hevy_exercise_id"

    async def upsert(self, template: ImportedExerciseTemplate) -> None:
        await self._upsert(
            {
                "user_id": template.user_id,
                "hevy_exercise_id": template.hevy_exercise_id,
                "title": template.title,
                "primary_muscle_group": template.primary_muscle_group,
                "secondary_muscle_groups": json.dumps(template.secondary_muscle_groups),
                "equipment": template.equipment,
                "exercise_type": template.exercise_type,
                "is_custom": 1 if template.is_custom else 0,
                "data": json.dumps(template.data),
            }
        )

    def _row_to_record(self, row: aiosqlite.Row) -> ImportedExerciseTemplate:
        return ImportedExerciseTemplate(
            id=row["id"],
            user_id=row["user_id"],
            hevy_exercise_id=row["hevy_exercise_id"],
            title=row["title"],
            primary_muscle_group=row["primary_muscle_group"],
            secondary_muscle_groups=json.loads(row["secondary_muscle_groups"] or "[]"),
            equipment=row["equipment"],
            exercise_type=row["exercise_type"],
            is_custom=bool(row["is_custom"]),
            data=json.loads(row["data"]),
            last_synced_at=from_db_time(row["last_synced_at"]),
        )


class RoutineFolderRepository(_ImportedRepository):
    """Repository for cached routine folders."""

    table = "imported_routine_folders"
    id_column = "hevy_folder_id"

    async def upsert(self, folder: ImportedRoutineFolder) -> None:
        await self._upsert(
            {
                "user_id": folder.user_id,
                "hevy_folder_id": folder.hevy_folder_id,
                "title": folder.title,
                "folder_index": folder.index,
                "data": json.dumps(folder.data),
            }
        )

    def _row_to_record(self, row: aiosqlite.Row) -> ImportedRoutineFolder:
        return ImportedRoutineFolder(
            id=row["id"],
            user_id=row["user_id"],
            hevy_folder_id=row["hevy_folder_id"],
            title=row["title"],
            index=row["folder_index"],
            data=json.loads(row["data"]),
            last_synced_at=from_db_time(row["last_synced_at"]),
        )


class RoutineRepository(_ImportedRepository):
    """Repository for cached routines."""

    table = "imported_routines"
    id_column = "hevy_routine_id"

    async def upsert(self, routine: ImportedRoutine) -> None:
        await self._upsert(
            {
                "user_id": routine.user_id,
                "hevy_routine_id": routine.hevy_routine_id,
                "title": routine.title,
                "folder_id": routine.folder_id,
                "data": json.dumps(routine.data),
            }
        )

    def _row_to_record(self, row: aiosqlite.Row) -> ImportedRoutine:
        return ImportedRoutine(
            id=row["id"],
            user_id=row["user_id"],
            hevy_routine_id=row["hevy_routine_id"],
            title=row["title"],
            folder_id=row["folder_id"],
            data=json.loads(row["data"]),
            last_synced_at=from_db_time(row["last_synced_at"]),
        )


class WorkoutRepository(_ImportedRepository):
    """Repository for cached workouts."""

    table = "imported_workouts"
    id_column = "hevy_workout_id"

    async def upsert(self, workout: ImportedWorkout) -> None:
        await self._upsert(
            {
                "user_id": workout.user_id,
                "hevy_workout_id": workout.hevy_workout_id,
                "title": workout.title,
                "start_time": to_db_time(workout.start_time),
                "end_time": to_db_time(workout.end_time),
                "data": json.dumps(workout.data),
            }
        )

    async def list_since(self, user_id: str, since: datetime) -> list[ImportedWorkout]:
        """Workouts started at or after ``since``, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM imported_workouts
                WHERE user_id = ? AND start_time >= ?
                ORDER BY start_time DESC
                """,
                (user_id, to_db_time(since)),
            )
            return [self._row_to_record(row) for row in await cursor.fetchall()]

    def _row_to_record(self, row: aiosqlite.Row) -> ImportedWorkout:
        return ImportedWorkout(
            id=row["id"],
            user_id=row["user_id"],
            hevy_workout_id=row["hevy_workout_id"],
            title=row["title"],
            start_time=from_db_time(row["start_time"]),
            end_time=from_db_time(row["end_time"]),
            data=json.loads(row["data"]),
            last_synced_at=from_db_time(row["last_synced_at"]),
        )


class SyncStatusRepository:
    """Repository for the sync run log."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def claim(
        self,
        user_id: str,
        sync_type: SyncType,
        parent_id: int | None = None,
    ) -> SyncStatus:
        """Start a run by inserting its in-progress row.

        For top-level runs (no ``parent_id``) the partial unique index makes
        this an atomic "one active run per user" claim.

        Raises:
            SyncInProgressError: Another top-level run is pending or in progress.
        """
        started_at = utcnow()
        async with aiosqlite.connect(self.db_path) as db:
            try:
                cursor = await db.execute(
                    """
                    INSERT INTO sync_status
                    (user_id, parent_id, sync_type, status, started_at, items_synced)
                    VALUES (?, ?, ?, ?, ?, 0)
                    """,
                    (
                        user_id,
                        parent_id,
                        sync_type.value,
                        SyncState.IN_PROGRESS.value,
                        to_db_time(started_at),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                raise SyncInProgressError() from e
            await db.commit()
            row_id = cursor.lastrowid

        return SyncStatus(
            id=row_id,
            user_id=user_id,
            sync_type=sync_type,
            status=SyncState.IN_PROGRESS,
            started_at=started_at,
            parent_id=parent_id,
        )

    async def update_progress(
        self,
        status_id: int,
        items_synced: int | None = None,
        total_items: int | None = None,
    ) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            if items_synced is not None:
                await db.execute(
                    "UPDATE sync_status SET items_synced = ? WHERE id = ?",
                    (items_synced, status_id),
                )
            if total_items is not None:
                await db.execute(
                    "UPDATE sync_status SET total_items = ? WHERE id = ?",
                    (total_items, status_id),
                )
            await db.commit()

    async def finalize(
        self,
        status_id: int,
        status: SyncState,
        items_synced: int | None = None,
        total_items: int | None = None,
        error_message: str | None = None,
        metadata: dict | list | None = None,
    ) -> None:
        """Close a run. Only rows still active are touched, so this happens once."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"""
                UPDATE sync_status SET
                    status = ?,
                    completed_at = ?,
                    items_synced = COALESCE(?, items_synced),
                    total_items = COALESCE(?, total_items),
                    error_message = ?,
                    metadata = ?
                WHERE id = ? AND status IN {ACTIVE_SYNC_STATES!r}
                """,
                (
                    status.value,
                    to_db_time(utcnow()),
                    items_synced,
                    total_items,
                    error_message,
                    json.dumps(metadata) if metadata is not None else None,
                    status_id,
                ),
            )
            await db.commit()

    async def get(self, status_id: int) -> SyncStatus | None:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM sync_status WHERE id = ?", (status_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_status(row) if row else None

    async def latest(
        self, user_id: str, sync_types: list[SyncType] | None = None
    ) -> SyncStatus | None:
        """Most recently started run of the given types."""
        runs = await self.recent(user_id, limit=1, sync_types=sync_types)
        return runs[0] if runs else None

    async def recent(
        self,
        user_id: str,
        limit: int = 10,
        sync_types: list[SyncType] | None = None,
    ) -> list[SyncStatus]:
        query = "SELECT * FROM sync_status WHERE user_id = ?"
        params: list = [user_id]
        if sync_types:
            query += f" AND sync_type IN ({', '.join('?' for _ in sync_types)})"
            params.extend(t.value for t in sync_types)
        query += " ORDER BY started_at DESC, id DESC LIMIT ?"
        params.append(limit)

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(query, params)
            return [self._row_to_status(row) for row in await cursor.fetchall()]

    async def has_active(self, user_id: str) -> bool:
        """True when any run of the user is pending or in progress."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"""
                SELECT 1 FROM sync_status
                WHERE user_id = ? AND status IN {ACTIVE_SYNC_STATES!r}
                LIMIT 1
                """,
                (user_id,),
            )
            return await cursor.fetchone() is not None

    async def fail_active(self, user_id: str, message: str) -> int:
        """Force every active run of the user to ``failed``. Returns the count."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"""
                UPDATE sync_status SET
                    status = ?, completed_at = ?, error_message = ?
                WHERE user_id = ? AND status IN {ACTIVE_SYNC_STATES!r}
                """,
                (SyncState.FAILED.value, to_db_time(utcnow()), message, user_id),
            )
            await db.commit()
            return cursor.rowcount

    def _row_to_status(self, row: aiosqlite.Row) -> SyncStatus:
        return SyncStatus(
            id=row["id"],
            user_id=row["user_id"],
            parent_id=row["parent_id"],
            sync_type=SyncType(row["sync_type"]),
            status=SyncState(row["status"]),
            started_at=from_db_time(row["started_at"]),
            completed_at=from_db_time(row["completed_at"]),
            items_synced=row["items_synced"] or 0,
            total_items=row["total_items"],
            error_message=row["error_message"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else None,
        )


class GeneratedRoutineRepository:
    """Repository for generation results."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def create(self, generated: GeneratedRoutine) -> int:
        now = to_db_time(utcnow())
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO generated_routines
                (user_id, routine_data, ai_context, exported_to_hevy, hevy_routine_id,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    generated.user_id,
                    json.dumps([r.to_dict() for r in generated.routines]),
                    json.dumps(generated.ai_context),
                    1 if generated.exported_to_hevy else 0,
                    generated.hevy_routine_id,
                    now,
                    now,
                ),
            )
            await db.commit()
            return cursor.lastrowid

    async def get(self, routine_id: int) -> GeneratedRoutine | None:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM generated_routines WHERE id = ?", (routine_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_generated(row) if row else None

    async def list_for_user(self, user_id: str) -> list[GeneratedRoutine]:
        """The user's generation results, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM generated_routines
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (user_id,),
            )
            return [self._row_to_generated(row) for row in await cursor.fetchall()]

    async def mark_exported(self, routine_id: int, hevy_routine_id: str) -> bool:
        """Record the export of index 0. False if it was already recorded."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                UPDATE generated_routines SET
                    exported_to_hevy = 1, hevy_routine_id = ?, updated_at = ?
                WHERE id = ? AND exported_to_hevy = 0
                """,
                (hevy_routine_id, to_db_time(utcnow()), routine_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    def _row_to_generated(self, row: aiosqlite.Row) -> GeneratedRoutine:
        return GeneratedRoutine(
            id=row["id"],
            user_id=row["user_id"],
            routines=[Routine.from_dict(r) for r in json.loads(row["routine_data"])],
            ai_context=json.loads(row["ai_context"] or "{}"),
            exported_to_hevy=bool(row["exported_to_hevy"]),
            hevy_routine_id=row["hevy_routine_id"],
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )


class ErrorLogRepository:
    """Repository for diagnostic error logs."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def create(self, log: ErrorLog) -> int:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO error_logs (user_id, type, error, context, is_resolved, created_at)
                VALUES (?, ?, ?, ?, 0, ?)
                """,
                (
                    log.user_id,
                    log.type,
                    log.error,
                    json.dumps(log.context, default=str),
                    to_db_time(utcnow()),
                ),
            )
            await db.commit()
            return cursor.lastrowid

    async def get(self, log_id: int) -> ErrorLog | None:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT * FROM error_logs WHERE id = ?", (log_id,))
            row = await cursor.fetchone()
            return self._row_to_log(row) if row else None

    async def list_logs(
        self,
        type: str | None = None,
        resolved: bool | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[ErrorLog], int]:
        """Filtered page of logs, newest first, plus the total matching count."""
        where = []
        params: list = []
        if type:
            where.append("type = ?")
            params.append(type)
        if resolved is not None:
            where.append("is_resolved = ?")
            params.append(1 if resolved else 0)
        clause = f"WHERE {' AND '.join(where)}" if where else ""

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"SELECT COUNT(*) FROM error_logs {clause}", params)
            total = (await cursor.fetchone())[0]
            cursor = await db.execute(
                f"""
                SELECT * FROM error_logs {clause}
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                [*params, limit, (page - 1) * limit],
            )
            logs = [self._row_to_log(row) for row in await cursor.fetchall()]
        return logs, total

    async def set_resolved(self, log_id: int, is_resolved: bool) -> ErrorLog | None:
        resolved_at = to_db_time(utcnow()) if is_resolved else None
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE error_logs SET is_resolved = ?, resolved_at = ? WHERE id = ?",
                (1 if is_resolved else 0, resolved_at, log_id),
            )
            await db.commit()
        return await self.get(log_id)

    def _row_to_log(self, row: aiosqlite.Row) -> ErrorLog:
        return ErrorLog(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            error=row["error"],
            context=json.loads(row["context"] or "{}"),
            is_resolved=bool(row["is_resolved"]),
            created_at=from_db_time(row["created_at"]),
            resolved_at=from_db_time(row["resolved_at"]),
        )
