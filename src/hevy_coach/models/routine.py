"""Generated routine data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..errors import ValidationError


class SetType(str, Enum):
    """Set types understood by Hevy."""

    NORMAL = "normal"
    WARMUP = "warmup"
    FAILURE = "failure"
    DROP = "drop"


# Hevy's own spelling for the same set type
SET_TYPE_ALIASES = {"dropset": SetType.DROP}


def parse_set_type(value) -> SetType | str:
    """Known set types become ``SetType``; anything else is kept as given."""
    if value is None or value == "":
        return SetType.NORMAL
    if isinstance(value, SetType):
        return value
    value = str(value)
    if value in SET_TYPE_ALIASES:
        return SET_TYPE_ALIASES[value]
    try:
        return SetType(value)
    except ValueError:
        return value


class ProgressionType(str, Enum):
    """How target weight and reps change week over week."""

    LINEAR = "linear"
    UNDULATING = "undulating"
    BLOCK = "block"


@dataclass
class RepRange:
    """Inclusive target rep range."""

    start: int
    end: int

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


@dataclass
class RoutineSet:
    """A single prescribed set."""

    type: SetType | str
    reps: int
    rep_range: RepRange
    weight_kg: float | None = None

    @property
    def type_value(self) -> str:
        return self.type.value if isinstance(self.type, SetType) else self.type

    def to_dict(self) -> dict:
        return {
            "type": self.type_value,
            "weight_kg": self.weight_kg,
            "reps": self.reps,
            "rep_range": self.rep_range.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RoutineSet":
        reps = int(data.get("reps") or 0)
        rep_range = data.get("rep_range") or {"start": reps, "end": reps}
        weight = data.get("weight_kg")
        return cls(
            type=parse_set_type(data.get("type")),
            reps=reps,
            rep_range=RepRange(start=int(rep_range["start"]), end=int(rep_range["end"])),
            weight_kg=float(weight) if weight is not None else None,
        )


@dataclass
class RoutineExercise:
    """An exercise slot in a routine, referencing a Hevy exercise template."""

    exercise_template_id: str
    title: str
    sets: list[RoutineSet]
    rest_seconds: int = 90
    notes: str | None = None
    superset_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "exercise_template_id": self.exercise_template_id,
            "title": self.title,
            "superset_id": self.superset_id,
            "rest_seconds": self.rest_seconds,
            "notes": self.notes,
            "sets": [s.to_dict() for s in self.sets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RoutineExercise":
        superset = data.get("superset_id")
        return cls(
            exercise_template_id=str(data["exercise_template_id"]),
            title=data.get("title", ""),
            sets=[RoutineSet.from_dict(s) for s in data.get("sets", [])],
            rest_seconds=int(data.get("rest_seconds") or 0),
            notes=data.get("notes"),
            superset_id=str(superset) if superset is not None else None,
        )


@dataclass
class Routine:
    """One training session as produced by the model."""

    title: str
    exercises: list[RoutineExercise]
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "notes": self.notes,
            "exercises": [ex.to_dict() for ex in self.exercises],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Routine":
        return cls(
            title=data.get("title", ""),
            notes=data.get("notes") or "",
            exercises=[RoutineExercise.from_dict(ex) for ex in data.get("exercises", [])],
        )

    @property
    def exercise_ids(self) -> list[str]:
        return [ex.exercise_template_id for ex in self.exercises]


@dataclass
class GenerationRequest:
    """Parameters of a program generation request."""

    workouts_per_week: int
    session_duration: int  # minutes
    duration: int  # weeks
    progression_type: ProgressionType = ProgressionType.LINEAR
    focus_area: str | None = None
    split_type: str | None = None
    special_instructions: str | None = None
    expand_weeks: bool = False

    def to_dict(self) -> dict:
        return {
            "workouts_per_week": self.workouts_per_week,
            "session_duration": self.session_duration,
            "duration": self.duration,
            "progression_type": self.progression_type.value,
            "focus_area": self.focus_area,
            "split_type": self.split_type,
            "special_instructions": self.special_instructions,
            "expand_weeks": self.expand_weeks,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationRequest":
        """Build from request parameters. Ranges are checked by the generator."""
        progression = data.get("progression_type") or ProgressionType.LINEAR.value
        try:
            progression = ProgressionType(progression)
        except ValueError as e:
            raise ValidationError(
                "Progression type must be one of: linear, undulating, block"
            ) from e
        return cls(
            workouts_per_week=data.get("workouts_per_week"),
            session_duration=data.get("session_duration"),
            duration=data.get("duration"),
            progression_type=progression,
            focus_area=data.get("focus_area") or None,
            split_type=data.get("split_type") or None,
            special_instructions=data.get("special_instructions") or None,
            expand_weeks=bool(data.get("expand_weeks", False)),
        )


@dataclass
class GeneratedRoutine:
    """A persisted generation result."""

    user_id: str
    routines: list[Routine]
    ai_context: dict = field(default_factory=dict)
    exported_to_hevy: bool = False
    hevy_routine_id: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def parameters(self) -> dict:
        return self.ai_context.get("parameters") or {}

    @property
    def reasoning(self) -> str:
        return self.ai_context.get("reasoning") or ""

    @property
    def periodization_notes(self) -> str:
        return self.ai_context.get("periodization_notes") or ""

    @property
    def metadata(self) -> dict:
        """Summary shown in history and detail views."""
        params = self.parameters
        context = self.ai_context.get("training_context") or {}
        return {
            "duration": params.get("duration"),
            "workouts_per_week": params.get("workouts_per_week"),
            "session_duration": params.get("session_duration"),
            "split_type": params.get("split_type"),
            "progression_type": params.get("progression_type"),
            "focus_area": params.get("focus_area"),
            "exercise_count": context.get("available_exercises", {}).get("total_count"),
            "routine_count": len(self.routines),
        }

    def history_item(self) -> dict:
        """Compact listing entry: metadata plus the first routine only."""
        first = (
            self.routines[0].to_dict()
            if self.routines
            else {"title": "Untitled Routine", "notes": "", "exercises": []}
        )
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "exported_to_hevy": self.exported_to_hevy,
            "metadata": self.metadata,
            "first_routine": first,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "routines": [r.to_dict() for r in self.routines],
            "reasoning": self.reasoning,
            "periodization_notes": self.periodization_notes,
            "metadata": self.metadata,
            "exported_to_hevy": self.exported_to_hevy,
            "hevy_routine_id": self.hevy_routine_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
