"""Pure transformations of generated routines.

Covers conversion to the Hevy create-routine schema, exercise id validation,
and deriving weekly progressive-overload and deload variants of a routine.
None of these functions mutate their input.
"""

import math
from dataclasses import dataclass, replace

from ..models.routine import ProgressionType, RepRange, Routine, RoutineSet, SetType

DELOAD_NOTE = "Deload week: Focus on form and recovery"
DELOAD_ROUTINE_NOTE = "DELOAD WEEK: Reduced volume and intensity for recovery"
DELOAD_EVERY_WEEKS = 4

# Set types whose Hevy wire value differs from ours
HEVY_SET_TYPES = {SetType.DROP: "dropset"}


def round_to_half(value: float) -> float:
    """Round to the nearest 0.5 (halves round up)."""
    return math.floor(value * 2 + 0.5) / 2


def to_hevy_create_request(routine: Routine, folder_id: int | None = None) -> dict:
    """Map a generated routine to the body of ``POST /routines``."""
    return {
        "routine": {
            "title": routine.title,
            "folder_id": folder_id,
            "notes": routine.notes,
            "exercises": [
                {
                    "exercise_template_id": ex.exercise_template_id,
                    "superset_id": ex.superset_id,
                    "rest_seconds": ex.rest_seconds,
                    "notes": ex.notes or "",
                    "sets": [
                        {
                            "type": HEVY_SET_TYPES.get(s.type, s.type_value),
                            "weight_kg": s.weight_kg or 0,
                            "reps": s.reps,
                            "distance_meters": None,
                            "duration_seconds": None,
                            "custom_metric": None,
                            "rep_range": s.rep_range.to_dict(),
                        }
                        for s in ex.sets
                    ],
                }
                for ex in routine.exercises
            ],
        }
    }


@dataclass
class ExerciseIdCheck:
    valid: bool
    invalid_ids: list[str]


def validate_exercise_ids(routine: Routine, available_ids: set[str]) -> ExerciseIdCheck:
    """Check every exercise references a known template.

    ``invalid_ids`` lists the unknown ids in order of first appearance.
    """
    invalid: list[str] = []
    for exercise_id in routine.exercise_ids:
        if exercise_id not in available_ids and exercise_id not in invalid:
            invalid.append(exercise_id)
    return ExerciseIdCheck(valid=not invalid, invalid_ids=invalid)


def _overload_factors(week: int, progression: ProgressionType) -> tuple[float, int]:
    """Weight multiplier and rep offset for ``week`` (1-based)."""
    if progression is ProgressionType.LINEAR:
        return 1 + (week - 1) * 0.025, 0

    if progression is ProgressionType.UNDULATING:
        # heavy / light / medium
        phase = week % 3
        if phase == 1:
            return 1.10, -2
        if phase == 2:
            return 0.95, 2
        return 1.05, 0

    # Block: 4-week blocks of hypertrophy, strength, then power
    block = (week - 1) // 4
    if block == 0:
        return 0.95, 2
    if block == 1:
        return 1.10, -2
    return 1.15, -4


def apply_progressive_overload(
    routine: Routine,
    week: int,
    progression: ProgressionType = ProgressionType.LINEAR,
) -> Routine:
    """Scale working-set weights and shift reps for ``week``.

    Only normal sets with a weight change. Weights round to the nearest 0.5;
    reps and rep range bounds never drop below 1.
    """
    multiplier, rep_offset = _overload_factors(week, ProgressionType(progression))

    def adjust(s: RoutineSet) -> RoutineSet:
        if s.type is not SetType.NORMAL or not s.weight_kg:
            return s
        return replace(
            s,
            weight_kg=round_to_half(s.weight_kg * multiplier),
            reps=max(1, s.reps + rep_offset),
            rep_range=RepRange(
                start=max(1, s.rep_range.start + rep_offset),
                end=max(1, s.rep_range.end + rep_offset),
            ),
        )

    return replace(
        routine,
        title=f"{routine.title} - Week {week}",
        exercises=[
            replace(ex, sets=[adjust(s) for s in ex.sets]) for ex in routine.exercises
        ],
    )


def create_deload_routine(routine: Routine) -> Routine:
    """Lighter copy of ``routine`` for a recovery week.

    Keeps about 60% of each exercise's sets (normal sets only, at least one),
    cuts weight by 30% and reps by 20%, and gives 50% more rest.
    """

    def deload(s: RoutineSet) -> RoutineSet:
        return replace(
            s,
            weight_kg=round_to_half(s.weight_kg * 0.7) if s.weight_kg else None,
            reps=max(1, math.floor(s.reps * 0.8)),
            rep_range=RepRange(
                start=max(1, math.floor(s.rep_range.start * 0.8)),
                end=max(1, math.floor(s.rep_range.end * 0.8)),
            ),
        )

    exercises = []
    for ex in routine.exercises:
        keep = max(1, math.floor(len(ex.sets) * 0.6))
        working = [s for s in ex.sets if s.type is SetType.NORMAL][:keep]
        exercises.append(
            replace(
                ex,
                rest_seconds=math.floor(ex.rest_seconds * 1.5),
                sets=[deload(s) for s in working],
                notes=f"{ex.notes}\n{DELOAD_NOTE}" if ex.notes else DELOAD_NOTE,
            )
        )

    return replace(
        routine,
        title=f"{routine.title} - Deload Week",
        notes=f"{routine.notes}\n\n{DELOAD_ROUTINE_NOTE}",
        exercises=exercises,
    )


def expand_weeks(
    routine: Routine, duration: int, progression: ProgressionType
) -> list[Routine]:
    """One routine per week; every 4th week is a deload when the program runs 4+ weeks."""
    weeks = []
    for week in range(1, duration + 1):
        if duration >= DELOAD_EVERY_WEEKS and week % DELOAD_EVERY_WEEKS == 0:
            weeks.append(create_deload_routine(routine))
        else:
            weeks.append(apply_progressive_overload(routine, week, progression))
    return weeks


def enrich_with_metadata(
    routine: Routine,
    week_number: int | None = None,
    mesocycle: str | None = None,
    focus_area: str | None = None,
    target_muscles: list[str] | None = None,
) -> Routine:
    """Append week, mesocycle, focus and target lines to the routine notes."""
    lines = [
        routine.notes,
        f"Week {week_number}" if week_number else "",
        f"Mesocycle: {mesocycle}" if mesocycle else "",
        f"Focus: {focus_area}" if focus_area else "",
        f"Targets: {', '.join(target_muscles)}" if target_muscles else "",
    ]
    return replace(routine, notes="\n".join(line for line in lines if line))


def split_program_into_weeks(routines: list[Routine], program_name: str) -> list[Routine]:
    """Prefix each routine title with the program name and its week."""
    return [
        replace(r, title=f"{program_name} - Week {i}: {r.title}")
        for i, r in enumerate(routines, start=1)
    ]
