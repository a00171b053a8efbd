"""Data models for hevy-coach."""

from .error_log import ErrorLog
from .hevy import (
    ImportedExerciseTemplate,
    ImportedRoutine,
    ImportedRoutineFolder,
    ImportedWorkout,
)
from .routine import (
    GeneratedRoutine,
    GenerationRequest,
    ProgressionType,
    RepRange,
    Routine,
    RoutineExercise,
    RoutineSet,
    SetType,
)
from .sync import FullSyncResult, SyncResult, SyncState, SyncStatus, SyncType
from .user_profile import ExperienceLevel, UserProfile

__all__ = [
    "ErrorLog",
    "ExperienceLevel",
    "FullSyncResult",
    "GeneratedRoutine",
    "GenerationRequest",
    "ImportedExerciseTemplate",
    "ImportedRoutine",
    "ImportedRoutineFolder",
    "ImportedWorkout",
    "ProgressionType",
    "RepRange",
    "Routine",
    "RoutineExercise",
    "RoutineSet",
    "SetType",
    "SyncResult",
    "SyncState",
    "SyncStatus",
    "SyncType",
    "UserProfile",
]
