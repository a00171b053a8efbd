"""Hevy to local cache synchronization."""

from .base import ResourceSync
from .exercises import ExerciseSync
from .routine_folders import RoutineFolderSync
from .routines import RoutineSync
from .service import HevySyncService
from .workouts import IncrementalWorkoutSync, WorkoutSync

__all__ = [
    "ExerciseSync",
    "HevySyncService",
    "IncrementalWorkoutSync",
    "ResourceSync",
    "RoutineFolderSync",
    "RoutineSync",
    "WorkoutSync",
]
