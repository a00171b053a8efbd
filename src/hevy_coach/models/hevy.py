"""Local caches of Hevy resources.

Each record keeps the raw payload returned by the Hevy API in ``data`` plus a
few denormalized columns used for lookups. Records are unique per
(user, Hevy id).
"""

from dataclasses import dataclass, field
from datetime import datetime


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by Hevy (``Z`` suffix allowed)."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass
class ImportedExerciseTemplate:
    """An exercise template (built-in or custom) from the user's Hevy library."""

    user_id: str
    hevy_exercise_id: str
    title: str | None = None
    primary_muscle_group: str | None = None
    secondary_muscle_groups: list[str] = field(default_factory=list)
    equipment: str | None = None
    exercise_type: str | None = None
    is_custom: bool = False
    data: dict = field(default_factory=dict)
    last_synced_at: datetime | None = None
    id: int | None = None

    @classmethod
    def from_payload(cls, user_id: str, payload: dict) -> "ImportedExerciseTemplate":
        return cls(
            user_id=user_id,
            hevy_exercise_id=str(payload["id"]),
            title=payload.get("title"),
            primary_muscle_group=payload.get("primary_muscle_group"),
            secondary_muscle_groups=list(payload.get("secondary_muscle_groups") or []),
            equipment=payload.get("equipment"),
            exercise_type=payload.get("type"),
            is_custom=bool(payload.get("is_custom", False)),
            data=payload,
        )

    @property
    def is_complete(self) -> bool:
        """Usable for generation: has a title, a primary muscle and equipment."""
        return bool(self.title and self.primary_muscle_group and self.equipment)


@dataclass
class ImportedRoutineFolder:
    """A routine folder."""

    user_id: str
    hevy_folder_id: str
    title: str | None = None
    index: int | None = None
    data: dict = field(default_factory=dict)
    last_synced_at: datetime | None = None
    id: int | None = None

    @classmethod
    def from_payload(cls, user_id: str, payload: dict) -> "ImportedRoutineFolder":
        return cls(
            user_id=user_id,
            hevy_folder_id=str(payload["id"]),
            title=payload.get("title"),
            index=payload.get("index"),
            data=payload,
        )


@dataclass
class ImportedRoutine:
    """A saved routine. ``folder_id`` is the Hevy folder id when that folder is cached."""

    user_id: str
    hevy_routine_id: str
    title: str | None = None
    folder_id: str | None = None
    data: dict = field(default_factory=dict)
    last_synced_at: datetime | None = None
    id: int | None = None

    @classmethod
    def from_payload(
        cls, user_id: str, payload: dict, folder_id: str | None = None
    ) -> "ImportedRoutine":
        return cls(
            user_id=user_id,
            hevy_routine_id=str(payload["id"]),
            title=payload.get("title"),
            folder_id=folder_id,
            data=payload,
        )


@dataclass
class ImportedWorkout:
    """A logged workout."""

    user_id: str
    hevy_workout_id: str
    title: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    data: dict = field(default_factory=dict)
    last_synced_at: datetime | None = None
    id: int | None = None

    @classmethod
    def from_payload(cls, user_id: str, payload: dict) -> "ImportedWorkout":
        return cls(
            user_id=user_id,
            hevy_workout_id=str(payload["id"]),
            title=payload.get("title"),
            start_time=parse_timestamp(payload.get("start_time")),
            end_time=parse_timestamp(payload.get("end_time")),
            data=payload,
        )

    @property
    def exercises(self) -> list[dict]:
        return self.data.get("exercises") or []
