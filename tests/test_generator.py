"""Tests for program generation."""

import json

import httpx
import openai
import pytest

from hevy_coach.config import Settings
from hevy_coach.db import (
    ErrorLogRepository,
    ExerciseTemplateRepository,
    GeneratedRoutineRepository,
)
from hevy_coach.errors import (
    DEFAULT_USER_MESSAGE,
    USER_MESSAGES,
    ConfigurationError,
    GenerationErrorKind,
    GenerationFailedError,
    NotFoundError,
    ValidationError,
)
from hevy_coach.generation import ProgramGenerator
from hevy_coach.generation.transformer import to_hevy_create_request
from hevy_coach.models.hevy import ImportedExerciseTemplate
from hevy_coach.models.routine import GenerationRequest, ProgressionType

from conftest import USER_ID, FakeOpenAI, make_template

MUSCLES = ["chest", "lats", "quadriceps", "hamstrings", "shoulders"]


def program_json(exercise_ids: list[str], routine_count: int = 1) -> str:
    """A well-formed model answer using the given template ids."""
    routines = [
        {
            "title": f"Day {i + 1}",
            "notes": "Add 2.5kg each week",
            "exercises": [
                {
                    "exercise_template_id": exercise_id,
                    "title": exercise_id,
                    "superset_id": None,
                    "rest_seconds": 120,
                    "notes": "",
                    "sets": [
                        {"type": "warmup", "weight_kg": 40, "reps": 10, "rep_range": {"start": 10, "end": 10}},
                        {"type": "normal", "weight_kg": 80, "reps": 8, "rep_range": {"start": 6, "end": 8}},
                    ],
                }
                for exercise_id in exercise_ids
            ],
        }
        for i in range(routine_count)
    ]
    return json.dumps(
        {
            "routines": routines,
            "reasoning": "Balanced split",
            "periodization_notes": "Deload in week 4",
        }
    )


def request(**overrides) -> GenerationRequest:
    params = {"workouts_per_week": 3, "session_duration": 60, "duration": 4}
    params.update(overrides)
    return GenerationRequest.from_dict(params)


class Sleeper:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
async def catalog(db_path, stored_profile):
    """Fifty complete exercise templates for the stored profile."""
    repo = ExerciseTemplateRepository(db_path)
    for i in range(50):
        template = make_template(i, muscle=MUSCLES[i % len(MUSCLES)])
        await repo.upsert(ImportedExerciseTemplate.from_payload(USER_ID, template))
    return [f"EX{i:03d}" for i in range(50)]


@pytest.fixture
def sleeper():
    return Sleeper()


def make_generator(settings, db_path, fake, sleeper) -> ProgramGenerator:
    return ProgramGenerator(settings, db_path, client=fake, sleep=sleeper)


class TestRequestValidation:
    """Parameters are checked before anything external happens."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"workouts_per_week": 8},
            {"workouts_per_week": 0},
            {"session_duration": 29},
            {"session_duration": 181},
            {"duration": 13},
            {"duration": None},
            {"workouts_per_week": True},
        ],
    )
    async def test_out_of_range_never_calls_the_model(
        self, settings, db_path, catalog, sleeper, overrides
    ):
        fake = FakeOpenAI([program_json(catalog[:3])])
        generator = make_generator(settings, db_path, fake, sleeper)

        with pytest.raises(ValidationError):
            await generator.generate(USER_ID, request(**overrides))

        assert fake.calls == []

    async def test_missing_openai_key_is_a_configuration_error(self, tmp_path, db_path):
        settings = Settings(_env_file=None, openai_api_key=None, data_dir=tmp_path)
        generator = ProgramGenerator(settings, db_path)

        with pytest.raises(ConfigurationError):
            await generator.generate(USER_ID, request())

    async def test_requires_a_profile(self, settings, db_path, sleeper):
        fake = FakeOpenAI()
        with pytest.raises(NotFoundError):
            await make_generator(settings, db_path, fake, sleeper).generate(USER_ID, request())

    async def test_requires_synced_exercises(self, settings, db_path, stored_profile, sleeper):
        fake = FakeOpenAI([program_json(["EX001"])])

        with pytest.raises(ValidationError) as exc_info:
            await make_generator(settings, db_path, fake, sleeper).generate(USER_ID, request())

        assert "sync your exercises" in exc_info.value.message
        assert fake.calls == []


class TestGeneration:
    """Tests for the attempt loop and persistence."""

    async def test_end_to_end(self, settings, db_path, catalog, sleeper):
        fake = FakeOpenAI(
            ["Here is your plan:\n```json\n" + program_json(catalog[:5], routine_count=4) + "\n```"]
        )
        generator = make_generator(settings, db_path, fake, sleeper)

        generated = await generator.generate(
            USER_ID, request(workouts_per_week=4, focus_area="strength")
        )

        assert generated.id is not None
        assert len(generated.routines) == 4
        assert all(
            exercise.exercise_template_id in catalog
            for routine in generated.routines
            for exercise in routine.exercises
        )
        assert generated.reasoning == "Balanced split"
        assert generated.periodization_notes == "Deload in week 4"
        assert not generated.exported_to_hevy
        assert generated.metadata["exercise_count"] == 50
        assert generated.metadata["routine_count"] == 4
        assert generated.metadata["duration"] == 4
        assert generated.metadata["focus_area"] == "strength"
        assert generated.ai_context["model"] == settings.openai_model
        assert generated.ai_context["attempts"] == 1
        assert "EX049" in generated.ai_context["prompt"]

        [call] = fake.calls
        assert call["response_format"] == {"type": "json_object"}
        assert call["temperature"] == settings.openai_temperature
        assert call["max_tokens"] == settings.openai_max_tokens
        assert call["seed"] == 1
        assert sleeper.calls == []

    async def test_parse_failures_are_retried_and_logged(self, settings, db_path, catalog, sleeper):
        fake = FakeOpenAI(["not json at all {", "still {{ not json", program_json(catalog[:2])])
        generator = make_generator(settings, db_path, fake, sleeper)

        generated = await generator.generate(USER_ID, request())

        assert generated.ai_context["attempts"] == 3
        assert [c["seed"] for c in fake.calls] == [1, 2, 3]
        assert sleeper.calls == [1, 2]

        logs, total = await ErrorLogRepository(db_path).list_logs(type="ai_json_parse_error")
        assert total == 2
        assert {log.context["attempt"] for log in logs} == {1, 2}
        assert logs[0].user_id == USER_ID
        assert logs[0].context["raw_response"] == "still {{ not json"
        assert len(await GeneratedRoutineRepository(db_path).list_for_user(USER_ID)) == 1

    async def test_unknown_exercise_ids_exhaust_attempts(self, settings, db_path, catalog, sleeper):
        bad = program_json([catalog[0], "EX999", "EX998"])
        fake = FakeOpenAI([bad, bad, bad])
        generator = make_generator(settings, db_path, fake, sleeper)

        with pytest.raises(GenerationFailedError) as exc_info:
            await generator.generate(USER_ID, request())

        error = exc_info.value
        assert error.attempts == 3
        assert error.last_error.kind == GenerationErrorKind.INVALID_EXERCISE_IDS
        assert error.message == USER_MESSAGES[GenerationErrorKind.INVALID_EXERCISE_IDS]
        assert error.details == "Invalid exercise IDs: EX999, EX998"
        assert sleeper.calls == [1, 2]
        assert await GeneratedRoutineRepository(db_path).list_for_user(USER_ID) == []

    async def test_empty_and_upstream_failures_use_the_generic_message(
        self, settings, db_path, catalog, sleeper
    ):
        connection_error = openai.APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        )
        fake = FakeOpenAI(["", "   ", connection_error])
        generator = make_generator(settings, db_path, fake, sleeper)

        with pytest.raises(GenerationFailedError) as exc_info:
            await generator.generate(USER_ID, request())

        assert exc_info.value.last_error.kind == GenerationErrorKind.UPSTREAM
        assert exc_info.value.message == DEFAULT_USER_MESSAGE

    async def test_empty_routine_list_is_a_structure_error(self, settings, db_path, catalog, sleeper):
        empty = json.dumps({"routines": [], "reasoning": "nothing"})
        fake = FakeOpenAI([empty, empty, '{"plan": "no routines key"}'])
        generator = make_generator(settings, db_path, fake, sleeper)

        with pytest.raises(GenerationFailedError) as exc_info:
            await generator.generate(USER_ID, request())

        assert exc_info.value.last_error.kind == GenerationErrorKind.STRUCTURE
        assert exc_info.value.message == USER_MESSAGES[GenerationErrorKind.STRUCTURE]

    async def test_hevy_set_types_pass_through(self, settings, db_path, catalog, sleeper):
        answer = json.loads(program_json(catalog[:2]))
        answer["routines"][0]["exercises"][0]["sets"].append(
            {"type": "dropset", "weight_kg": 60, "reps": 12, "rep_range": {"start": 10, "end": 12}}
        )
        answer["routines"][0]["exercises"][1]["sets"][0]["type"] = "myo-rep"
        fake = FakeOpenAI([json.dumps(answer)])

        generated = await make_generator(settings, db_path, fake, sleeper).generate(
            USER_ID, request()
        )

        assert generated.ai_context["attempts"] == 1
        body = to_hevy_create_request(generated.routines[0])["routine"]
        first, second = body["exercises"]
        assert first["sets"][-1]["type"] == "dropset"
        assert second["sets"][0]["type"] == "myo-rep"
        [stored] = await GeneratedRoutineRepository(db_path).list_for_user(USER_ID)
        assert stored.routines[0].exercises[1].sets[0].type == "myo-rep"

    async def test_repairable_output_succeeds_first_time(self, settings, db_path, catalog, sleeper):
        text = program_json(catalog[:1])[:-1] + ",}"
        fake = FakeOpenAI([text])

        generated = await make_generator(settings, db_path, fake, sleeper).generate(
            USER_ID, request()
        )

        assert generated.ai_context["attempts"] == 1
        logs, total = await ErrorLogRepository(db_path).list_logs()
        assert total == 0

    async def test_expand_weeks_derives_weekly_routines(self, settings, db_path, catalog, sleeper):
        fake = FakeOpenAI([program_json(catalog[:2], routine_count=1)])
        generator = make_generator(settings, db_path, fake, sleeper)

        generated = await generator.generate(
            USER_ID,
            request(duration=4, expand_weeks=True, progression_type=ProgressionType.LINEAR.value),
        )

        titles = [r.title for r in generated.routines]
        assert titles == [
            "Day 1 - Week 1",
            "Day 1 - Week 2",
            "Day 1 - Week 3",
            "Day 1 - Deload Week",
        ]
        week_three = generated.routines[2].exercises[0].sets[1]
        assert week_three.weight_kg == 84
