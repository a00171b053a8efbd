"""Builds the training context handed to the program generator.

The context combines the user's profile, rollups over the last eight weeks of
synced workouts and the catalog of usable exercise templates.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

import structlog

from ..db.repositories import (
    ExerciseTemplateRepository,
    UserProfileRepository,
    WorkoutRepository,
)
from ..errors import NotFoundError
from ..models.hevy import ImportedExerciseTemplate, ImportedWorkout

logger = structlog.get_logger(__name__)

HISTORY_DAYS = 56
WEEKS_TRACKED = 8
RECENT_WORKOUTS = 10
MIN_WORKOUTS_FOR_TREND = 4
VOLUME_TREND_THRESHOLD = 0.10
INTENSITY_TREND_THRESHOLD = 0.05

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass
class ExerciseSummary:
    """Working sets of one exercise within a workout."""

    name: str
    sets: int
    total_volume: float
    max_weight: float
    avg_reps: float
    muscle_group: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "sets": self.sets,
            "total_volume": self.total_volume,
            "max_weight": self.max_weight,
            "avg_reps": round(self.avg_reps, 1),
            "muscle_group": self.muscle_group,
        }


@dataclass
class WorkoutSummary:
    name: str
    date: datetime
    exercises: list[ExerciseSummary] = field(default_factory=list)
    total_volume: float = 0.0
    muscle_groups: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "date": self.date.isoformat(),
            "exercises": [ex.to_dict() for ex in self.exercises],
            "total_volume": self.total_volume,
            "muscle_groups": self.muscle_groups,
        }


@dataclass
class ExerciseOption:
    """A template the model may use."""

    id: str
    title: str
    type: str
    primary_muscle: str
    equipment: str
    is_custom: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "primary_muscle": self.primary_muscle,
            "equipment": self.equipment,
            "is_custom": self.is_custom,
        }


@dataclass
class TrainingContext:
    profile: dict
    recent_workouts: list[WorkoutSummary]
    weekly_volume: list[float]
    frequency_pattern: dict[str, int]
    muscle_group_frequency: dict[str, int]
    volume_trend: str
    intensity_trend: str
    by_muscle_group: dict[str, list[ExerciseOption]]
    by_equipment: dict[str, list[ExerciseOption]]
    workout_count: int = 0  # every workout in the history window, not just those listed

    @property
    def available_exercise_ids(self) -> set[str]:
        return {opt.id for options in self.by_muscle_group.values() for opt in options}

    @property
    def total_exercises(self) -> int:
        return sum(len(options) for options in self.by_muscle_group.values())

    def to_dict(self) -> dict:
        """Snapshot stored with each generated routine."""
        return {
            "profile": self.profile,
            "training_history": {
                "workout_count": self.workout_count,
                "recent_workouts": [w.to_dict() for w in self.recent_workouts],
                "weekly_volume": self.weekly_volume,
                "frequency_pattern": self.frequency_pattern,
                "muscle_group_frequency": self.muscle_group_frequency,
                "progression_trends": {
                    "volume_trend": self.volume_trend,
                    "intensity_trend": self.intensity_trend,
                },
            },
            "available_exercises": {
                "by_muscle_group": {
                    k: [o.to_dict() for o in v] for k, v in self.by_muscle_group.items()
                },
                "by_equipment": {
                    k: [o.to_dict() for o in v] for k, v in self.by_equipment.items()
                },
                "total_count": self.total_exercises,
            },
        }


class TrainingContextBuilder:
    """Reads profile, workouts and templates and computes the rollups."""

    def __init__(self, db_path: Path | None = None):
        self.profile_repo = UserProfileRepository(db_path)
        self.workout_repo = WorkoutRepository(db_path)
        self.exercise_repo = ExerciseTemplateRepository(db_path)

    async def build(self, user_id: str, now: datetime | None = None) -> TrainingContext:
        """Build the context for ``user_id``.

        Raises:
            NotFoundError: The user has no profile.
        """
        now = now or datetime.now(timezone.utc)
        profile = await self.profile_repo.get(user_id)
        if profile is None:
            raise NotFoundError("User profile not found")

        workouts = await self.workout_repo.list_since(
            user_id, now - timedelta(days=HISTORY_DAYS)
        )
        templates = [
            t for t in await self.exercise_repo.list_for_user(user_id) if t.is_complete
        ]

        summaries = summarize_workouts(workouts, templates)
        by_muscle, by_equipment = group_exercises(templates)
        volume_trend, intensity_trend = progression_trends(summaries)

        context = TrainingContext(
            profile=profile.to_context(),
            recent_workouts=summaries[:RECENT_WORKOUTS],
            weekly_volume=weekly_volume(summaries, now),
            frequency_pattern=frequency_pattern(summaries),
            muscle_group_frequency=muscle_group_frequency(summaries),
            volume_trend=volume_trend,
            intensity_trend=intensity_trend,
            by_muscle_group=by_muscle,
            by_equipment=by_equipment,
            workout_count=len(summaries),
        )
        logger.info(
            "training_context_built",
            user_id=user_id,
            workouts=len(summaries),
            exercises=context.total_exercises,
        )
        return context


def summarize_workouts(
    workouts: list[ImportedWorkout], templates: list[ImportedExerciseTemplate]
) -> list[WorkoutSummary]:
    """Per-workout summaries, in the order given (newest first).

    Only normal sets with both a weight and reps count. Exercises whose
    template is unknown or incomplete are left out.
    """
    lookup = {t.hevy_exercise_id: t for t in templates if t.is_complete}
    summaries = []
    for workout in workouts:
        summary = WorkoutSummary(
            name=workout.title or "Workout",
            date=workout.start_time,
        )
        muscles: dict[str, None] = {}
        for exercise in workout.exercises:
            template = lookup.get(str(exercise.get("exercise_template_id")))
            if template is None:
                continue

            volume = 0.0
            max_weight = 0.0
            reps_total = 0
            set_count = 0
            for s in exercise.get("sets") or []:
                weight = s.get("weight_kg")
                reps = s.get("reps")
                if s.get("type") == "normal" and weight and reps:
                    volume += weight * reps
                    max_weight = max(max_weight, weight)
                    reps_total += reps
                    set_count += 1

            if set_count:
                summary.exercises.append(
                    ExerciseSummary(
                        name=template.title,
                        sets=set_count,
                        total_volume=volume,
                        max_weight=max_weight,
                        avg_reps=reps_total / set_count,
                        muscle_group=template.primary_muscle_group,
                    )
                )
                summary.total_volume += volume
                muscles[template.primary_muscle_group] = None
        summary.muscle_groups = list(muscles)
        summaries.append(summary)
    return summaries


def weekly_volume(workouts: list[WorkoutSummary], now: datetime) -> list[float]:
    """Volume per week for the last 8 weeks, oldest first, zero-filled."""
    buckets: dict[int, float] = defaultdict(float)
    for workout in workouts:
        weeks_ago = (now - workout.date) // timedelta(weeks=1)
        buckets[weeks_ago] += workout.total_volume
    return [buckets.get(i, 0.0) for i in range(WEEKS_TRACKED - 1, -1, -1)]


def frequency_pattern(workouts: list[WorkoutSummary]) -> dict[str, int]:
    counts = {day: 0 for day in WEEKDAYS}
    for workout in workouts:
        counts[WEEKDAYS[workout.date.weekday()]] += 1
    return counts


def muscle_group_frequency(workouts: list[WorkoutSummary]) -> dict[str, int]:
    """Number of workouts touching each muscle group."""
    counts: dict[str, int] = defaultdict(int)
    for workout in workouts:
        for group in workout.muscle_groups:
            counts[group] += 1
    return dict(counts)


def _classify(change: float, threshold: float) -> str:
    if change > threshold:
        return "increasing"
    if change < -threshold:
        return "decreasing"
    return "stable"


def _relative_change(recent: float, older: float) -> float:
    return (recent - older) / older if older > 0 else 0.0


def _avg_max_weight(workouts: list[WorkoutSummary]) -> float:
    weights = [ex.max_weight for w in workouts for ex in w.exercises if ex.max_weight > 0]
    return sum(weights) / len(weights) if weights else 0.0


def progression_trends(workouts: list[WorkoutSummary]) -> tuple[str, str]:
    """Volume and intensity trends, comparing the newer half to the older half.

    ``workouts`` is newest first. With fewer than 4 workouts both are stable.
    """
    if len(workouts) < MIN_WORKOUTS_FOR_TREND:
        return "stable", "stable"

    half = len(workouts) // 2
    recent, older = workouts[:half], workouts[half:]

    recent_volume = sum(w.total_volume for w in recent) / len(recent)
    older_volume = sum(w.total_volume for w in older) / len(older)
    volume_change = _relative_change(recent_volume, older_volume)
    intensity_change = _relative_change(_avg_max_weight(recent), _avg_max_weight(older))

    return (
        _classify(volume_change, VOLUME_TREND_THRESHOLD),
        _classify(intensity_change, INTENSITY_TREND_THRESHOLD),
    )


def group_exercises(
    templates: list[ImportedExerciseTemplate],
) -> tuple[dict[str, list[ExerciseOption]], dict[str, list[ExerciseOption]]]:
    """Group complete templates by primary muscle and by equipment."""
    by_muscle: dict[str, list[ExerciseOption]] = defaultdict(list)
    by_equipment: dict[str, list[ExerciseOption]] = defaultdict(list)
    for template in templates:
        if not template.is_complete:
            continue
        option = ExerciseOption(
            id=template.hevy_exercise_id,
            title=template.title,
            type=template.exercise_type or "unknown",
            primary_muscle=template.primary_muscle_group,
            equipment=template.equipment,
            is_custom=template.is_custom,
        )
        by_muscle[template.primary_muscle_group].append(option)
        by_equipment[template.equipment].append(option)
    return dict(by_muscle), dict(by_equipment)
