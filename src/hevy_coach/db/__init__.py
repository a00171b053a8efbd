"""Database layer for hevy-coach."""

from .engine import get_db_path, init_db
from .repositories import (
    ErrorLogRepository,
    ExerciseTemplateRepository,
    GeneratedRoutineRepository,
    RoutineFolderRepository,
    RoutineRepository,
    SyncStatusRepository,
    UserProfileRepository,
    WorkoutRepository,
)

__all__ = [
    "ErrorLogRepository",
    "ExerciseTemplateRepository",
    "GeneratedRoutineRepository",
    "get_db_path",
    "init_db",
    "RoutineFolderRepository",
    "RoutineRepository",
    "SyncStatusRepository",
    "UserProfileRepository",
    "WorkoutRepository",
]
