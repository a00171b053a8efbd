"""Tests for exporting generated routines to Hevy."""

import pytest

from hevy_coach.db import GeneratedRoutineRepository
from hevy_coach.errors import (
    ConflictError,
    ForbiddenError,
    HevyApiError,
    NotFoundError,
    ValidationError,
)
from hevy_coach.models.routine import (
    GeneratedRoutine,
    RepRange,
    Routine,
    RoutineExercise,
    RoutineSet,
    SetType,
)
from hevy_coach.services import ExportService

from conftest import USER_ID


def routine(title: str) -> Routine:
    return Routine(
        title=title,
        notes="",
        exercises=[
            RoutineExercise(
                exercise_template_id="EX001",
                title="Bench Press",
                rest_seconds=90,
                sets=[RoutineSet(SetType.NORMAL, 8, RepRange(6, 8), 80)],
            )
        ],
    )


@pytest.fixture
async def stored(db_path):
    repo = GeneratedRoutineRepository(db_path)
    routine_id = await repo.create(
        GeneratedRoutine(user_id=USER_ID, routines=[routine("Push"), routine("Pull")])
    )
    return routine_id


@pytest.fixture
def exports(hevy, db_path):
    return ExportService(hevy, db_path)


class TestExport:
    """Tests for ExportService.export."""

    async def test_first_routine_marks_the_result_exported(self, exports, stored, fake_hevy, db_path):
        result = await exports.export(USER_ID, stored)

        assert result["success"]
        assert result["hevy_routine_id"] == "hevy-routine-1"
        assert result["routine_title"] == "Push"
        [sent] = fake_hevy.created_routines
        assert sent["routine"]["exercises"][0]["sets"][0]["weight_kg"] == 80

        generated = await GeneratedRoutineRepository(db_path).get(stored)
        assert generated.exported_to_hevy
        assert generated.hevy_routine_id == "hevy-routine-1"

    async def test_first_routine_exports_once(self, exports, stored, fake_hevy):
        await exports.export(USER_ID, stored)

        with pytest.raises(ConflictError):
            await exports.export(USER_ID, stored)
        assert len(fake_hevy.created_routines) == 1

    async def test_other_indices_are_not_recorded(self, exports, stored, db_path):
        first = await exports.export(USER_ID, stored, routine_index=1)
        second = await exports.export(USER_ID, stored, routine_index=1)

        assert first["routine_title"] == "Pull"
        assert second["hevy_routine_id"] == "hevy-routine-2"
        status = await exports.export_status(USER_ID, stored)
        assert not status["exported"]
        assert status["hevy_routine_id"] is None

    async def test_index_out_of_range(self, exports, stored, fake_hevy):
        with pytest.raises(ValidationError) as exc_info:
            await exports.export(USER_ID, stored, routine_index=2)

        assert exc_info.value.message == "Invalid routine index. Only 2 routines available."
        assert fake_hevy.created_routines == []

    async def test_ownership_and_existence(self, exports, stored):
        with pytest.raises(ForbiddenError):
            await exports.export("someone-else", stored)
        with pytest.raises(NotFoundError):
            await exports.export(USER_ID, stored + 100)

    async def test_hevy_failure_leaves_result_unexported(self, exports, stored, fake_hevy):
        fake_hevy.failures["/routines"] = 400

        with pytest.raises(HevyApiError) as exc_info:
            await exports.export(USER_ID, stored)

        assert exc_info.value.status_code == 400
        status = await exports.export_status(USER_ID, stored)
        assert not status["exported"]
