"""Tests for training context rollups."""

from datetime import datetime, timedelta, timezone

import pytest

from hevy_coach.analysis.training_context import (
    ExerciseSummary,
    TrainingContextBuilder,
    WorkoutSummary,
    frequency_pattern,
    group_exercises,
    muscle_group_frequency,
    progression_trends,
    summarize_workouts,
    weekly_volume,
)
from hevy_coach.db import ExerciseTemplateRepository, WorkoutRepository
from hevy_coach.errors import NotFoundError
from hevy_coach.generation.prompts import build_user_prompt
from hevy_coach.models.hevy import ImportedExerciseTemplate, ImportedWorkout
from hevy_coach.models.routine import GenerationRequest

from conftest import USER_ID, make_template, make_workout, working_sets

NOW = datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)  # a Monday


def summary(days_ago: float, volume: float, max_weight: float = 100.0, muscle: str = "chest"):
    return WorkoutSummary(
        name="W",
        date=NOW - timedelta(days=days_ago),
        exercises=[
            ExerciseSummary(
                name="Bench",
                sets=3,
                total_volume=volume,
                max_weight=max_weight,
                avg_reps=5,
                muscle_group=muscle,
            )
        ],
        total_volume=volume,
        muscle_groups=[muscle],
    )


class TestRollups:
    """Tests for the pure rollup functions."""

    def test_weekly_volume_is_oldest_first_and_zero_filled(self):
        workouts = [summary(1, 1000), summary(2, 500), summary(15, 300)]

        volumes = weekly_volume(workouts, NOW)

        assert len(volumes) == 8
        assert volumes[-1] == 1500
        assert volumes[-3] == 300
        assert volumes[0] == 0

    def test_frequency_pattern_counts_weekdays(self):
        pattern = frequency_pattern([summary(0, 1), summary(7, 1), summary(1, 1)])

        assert pattern["monday"] == 2
        assert pattern["sunday"] == 1
        assert sum(pattern.values()) == 3

    def test_muscle_group_frequency(self):
        counts = muscle_group_frequency(
            [summary(0, 1, muscle="chest"), summary(1, 1, muscle="back"), summary(2, 1)]
        )
        assert counts == {"chest": 2, "back": 1}

    def test_fewer_than_four_workouts_is_stable(self):
        workouts = [summary(0, 5000, 200), summary(1, 100, 10), summary(2, 100, 10)]
        assert progression_trends(workouts) == ("stable", "stable")

    def test_increasing_trends(self):
        # newest first: the recent half lifts more and heavier
        workouts = [summary(0, 1200, 110), summary(1, 1200, 110), summary(8, 1000, 100), summary(9, 1000, 100)]
        assert progression_trends(workouts) == ("increasing", "increasing")

    def test_decreasing_volume_with_stable_intensity(self):
        workouts = [summary(0, 800, 102), summary(1, 800, 102), summary(8, 1000, 100), summary(9, 1000, 100)]
        assert progression_trends(workouts) == ("decreasing", "stable")

    def test_zero_older_volume_counts_as_stable(self):
        workouts = [summary(0, 900, 0), summary(1, 900, 0), summary(8, 0, 0), summary(9, 0, 0)]
        assert progression_trends(workouts) == ("stable", "stable")

    def test_summaries_count_only_weighted_normal_sets(self):
        template = ImportedExerciseTemplate.from_payload(USER_ID, make_template(1))
        workout = ImportedWorkout.from_payload(
            USER_ID,
            make_workout(
                "w1",
                "2024-06-01T10:00:00Z",
                [
                    {
                        "exercise_template_id": "EX001",
                        "sets": [
                            {"type": "warmup", "weight_kg": 40, "reps": 10},
                            {"type": "normal", "weight_kg": 100, "reps": 5},
                            {"type": "normal", "weight_kg": 110, "reps": 3},
                            {"type": "normal", "weight_kg": None, "reps": 8},
                        ],
                    },
                    working_sets("UNKNOWN", 50, 10),
                ],
            ),
        )

        [result] = summarize_workouts([workout], [template])

        assert result.total_volume == 830
        assert len(result.exercises) == 1
        assert result.exercises[0].sets == 2
        assert result.exercises[0].max_weight == 110
        assert result.exercises[0].avg_reps == 4
        assert result.muscle_groups == ["chest"]

    def test_group_exercises_skips_incomplete_templates(self):
        templates = [
            ImportedExerciseTemplate.from_payload(USER_ID, make_template(1, "chest", "barbell")),
            ImportedExerciseTemplate.from_payload(USER_ID, make_template(2, "chest", "dumbbell")),
            ImportedExerciseTemplate.from_payload(USER_ID, make_template(3, "back", None)),
        ]

        by_muscle, by_equipment = group_exercises(templates)

        assert [o.id for o in by_muscle["chest"]] == ["EX001", "EX002"]
        assert "back" not in by_muscle
        assert set(by_equipment) == {"barbell", "dumbbell"}


class TestTrainingContextBuilder:
    """Tests for building the context from the database."""

    async def test_requires_a_profile(self, db_path):
        with pytest.raises(NotFoundError):
            await TrainingContextBuilder(db_path).build(USER_ID)

    async def test_builds_from_cached_data(self, db_path, stored_profile):
        templates = ExerciseTemplateRepository(db_path)
        for payload in [make_template(1), make_template(2, "quadriceps"), make_template(3, None)]:
            await templates.upsert(ImportedExerciseTemplate.from_payload(USER_ID, payload))

        workouts = WorkoutRepository(db_path)
        recent = (NOW - timedelta(days=3)).isoformat()
        old = (NOW - timedelta(days=90)).isoformat()
        await workouts.upsert(
            ImportedWorkout.from_payload(
                USER_ID, make_workout("recent", recent, [working_sets("EX001", 100, 5)])
            )
        )
        await workouts.upsert(
            ImportedWorkout.from_payload(
                USER_ID, make_workout("old", old, [working_sets("EX001", 100, 5)])
            )
        )

        context = await TrainingContextBuilder(db_path).build(USER_ID, now=NOW)
        data = context.to_dict()

        assert context.total_exercises == 2
        assert context.available_exercise_ids == {"EX001", "EX002"}
        assert data["available_exercises"]["total_count"] == 2
        assert data["profile"]["experience_level"] == "intermediate"
        assert len(data["training_history"]["recent_workouts"]) == 1
        assert data["training_history"]["weekly_volume"][-1] == 1500
        assert data["training_history"]["progression_trends"] == {
            "volume_trend": "stable",
            "intensity_trend": "stable",
        }

    async def test_workout_count_is_not_capped_by_the_listing(self, db_path, stored_profile):
        templates = ExerciseTemplateRepository(db_path)
        await templates.upsert(ImportedExerciseTemplate.from_payload(USER_ID, make_template(1)))
        workouts = WorkoutRepository(db_path)
        for i in range(12):
            start = (NOW - timedelta(days=i * 3 + 1)).isoformat()
            await workouts.upsert(
                ImportedWorkout.from_payload(
                    USER_ID, make_workout(f"w{i}", start, [working_sets("EX001", 100, 5)])
                )
            )

        context = await TrainingContextBuilder(db_path).build(USER_ID, now=NOW)
        prompt = build_user_prompt(
            context,
            GenerationRequest.from_dict({"workouts_per_week": 3, "session_duration": 60, "duration": 4}),
        )

        assert context.workout_count == 12
        assert len(context.recent_workouts) == 10
        assert context.to_dict()["training_history"]["workout_count"] == 12
        assert "Recent workouts: 12 in the last 8 weeks (10 most recent shown)" in prompt
