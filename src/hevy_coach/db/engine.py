"""Database engine setup and initialization."""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from ..config import get_settings

ACTIVE_SYNC_STATES = ("pending", "in_progress")


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the database file path."""
    if data_dir is None:
        return get_settings().db_path
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "hevy_coach.db"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_time(value: datetime | None) -> str | None:
    """Store timestamps as UTC ISO strings so they sort lexicographically."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_db_time(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Run database migrations for schema updates."""
    # Databases created before full syncs tracked their stages lack parent_id
    cursor = await db.execute("PRAGMA table_info(sync_status)")
    columns = {col[1] for col in await cursor.fetchall()}
    if "parent_id" not in columns:
        await db.execute("ALTER TABLE sync_status ADD COLUMN parent_id INTEGER")

    # One non-terminal top-level run per user
    await db.execute(f"""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_sync_status_active_run
        ON sync_status(user_id)
        WHERE parent_id IS NULL AND status IN {ACTIVE_SYNC_STATES!r}
    """)
    await db.commit()


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_profiles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL UNIQUE,
                age INTEGER,
                birth_date TEXT,
                weight REAL,
                training_frequency INTEGER,
                experience_level TEXT,
                focus_areas TEXT DEFAULT '[]',
                injuries TEXT DEFAULT '[]',
                injury_details TEXT,
                other_activities TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS imported_exercise_templates (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                hevy_exercise_id TEXT NOT NULL,
                title TEXT,
                primary_muscle_group TEXT,
                secondary_muscle_groups TEXT DEFAULT '[]',
                equipment TEXT,
                exercise_type TEXT,
                is_custom INTEGER DEFAULT 0,
                data TEXT NOT NULL,
                imported_at TEXT NOT NULL,
                last_synced_at TEXT NOT NULL,
                UNIQUE (user_id, hevy_exercise_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS imported_routine_folders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                hevy_folder_id TEXT NOT NULL,
                title TEXT,
                folder_index INTEGER,
                data TEXT NOT NULL,
                imported_at TEXT NOT NULL,
                last_synced_at TEXT NOT NULL,
                UNIQUE (user_id, hevy_folder_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS imported_routines (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                hevy_routine_id TEXT NOT NULL,
                title TEXT,
                folder_id TEXT,
                data TEXT NOT NULL,
                imported_at TEXT NOT NULL,
                last_synced_at TEXT NOT NULL,
                UNIQUE (user_id, hevy_routine_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS imported_workouts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                hevy_workout_id TEXT NOT NULL,
                title TEXT,
                start_time TEXT,
                end_time TEXT,
                data TEXT NOT NULL,
                imported_at TEXT NOT NULL,
                last_synced_at TEXT NOT NULL,
                UNIQUE (user_id, hevy_workout_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS sync_status (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                parent_id INTEGER,
                sync_type TEXT NOT NULL,
                status TEXT NOT NULL,
                started_at TEXT NOT NULL,
                completed_at TEXT,
                items_synced INTEGER DEFAULT 0,
                total_items INTEGER,
                error_message TEXT,
                metadata TEXT,
                FOREIGN KEY (parent_id) REFERENCES sync_status(id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS generated_routines (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                routine_data TEXT NOT NULL,
                ai_context TEXT NOT NULL DEFAULT '{}',
                exported_to_hevy INTEGER DEFAULT 0,
                hevy_routine_id TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS error_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT,
                type TEXT NOT NULL,
                error TEXT NOT NULL,
                context TEXT DEFAULT '{}',
                is_resolved INTEGER DEFAULT 0,
                created_at TEXT NOT NULL,
                resolved_at TEXT
            )
        """)

        # Create indexes for common queries
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_imported_workouts_start
            ON imported_workouts(user_id, start_time)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_sync_status_user
            ON sync_status(user_id, started_at)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_generated_routines_user
            ON generated_routines(user_id, created_at)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_error_logs_type
            ON error_logs(type, is_resolved)
        """)

        await db.commit()

        # Run migrations for existing databases
        await _run_migrations(db)
