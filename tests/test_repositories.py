"""Tests for the database repositories."""

import pytest

from hevy_coach.db import (
    ErrorLogRepository,
    ExerciseTemplateRepository,
    GeneratedRoutineRepository,
    SyncStatusRepository,
    UserProfileRepository,
    init_db,
)
from hevy_coach.errors import SyncInProgressError
from hevy_coach.models.error_log import ErrorLog
from hevy_coach.models.hevy import ImportedExerciseTemplate
from hevy_coach.models.routine import GeneratedRoutine, Routine
from hevy_coach.models.sync import SyncState, SyncType
from hevy_coach.models.user_profile import UserProfile

from conftest import USER_ID, make_template


class TestUserProfileRepository:
    """Tests for UserProfileRepository."""

    async def test_upsert_replaces_fields(self, db_path, sample_profile):
        repo = UserProfileRepository(db_path)
        first = await repo.upsert(sample_profile)

        sample_profile.weight = 85.5
        sample_profile.focus_areas = ["endurance"]
        second = await repo.upsert(sample_profile)

        assert second.id == first.id
        assert second.weight == 85.5
        assert second.focus_areas == ["endurance"]

    async def test_create_if_missing_is_a_noop_for_existing(self, db_path, stored_profile):
        repo = UserProfileRepository(db_path)
        profile, created = await repo.create_if_missing(UserProfile.placeholder(USER_ID))

        assert not created
        assert profile.training_frequency == stored_profile.training_frequency

    async def test_create_if_missing_creates(self, db_path):
        profile, created = await UserProfileRepository(db_path).create_if_missing(
            UserProfile.placeholder("fresh")
        )
        assert created
        assert profile.training_frequency == 3

    async def test_init_db_is_idempotent(self, db_path, stored_profile):
        await init_db(db_path)
        assert await UserProfileRepository(db_path).get(USER_ID) is not None


class TestImportedRepositories:
    """Tests for the Hevy resource caches."""

    async def test_upsert_is_keyed_by_user_and_hevy_id(self, db_path):
        repo = ExerciseTemplateRepository(db_path)
        await repo.upsert(ImportedExerciseTemplate.from_payload(USER_ID, make_template(1)))
        await repo.upsert(
            ImportedExerciseTemplate.from_payload(USER_ID, make_template(1, title="Renamed"))
        )
        await repo.upsert(ImportedExerciseTemplate.from_payload("other", make_template(1)))

        templates = await repo.list_for_user(USER_ID)
        assert [t.title for t in templates] == ["Renamed"]
        assert await repo.count("other") == 1
        assert await repo.existing_ids(USER_ID) == {"EX001"}
        assert await repo.last_synced_at(USER_ID) is not None


class TestSyncStatusRepository:
    """Tests for the sync run log and its claim."""

    async def test_second_top_level_claim_conflicts(self, db_path):
        repo = SyncStatusRepository(db_path)
        await repo.claim(USER_ID, SyncType.EXERCISES)

        with pytest.raises(SyncInProgressError):
            await repo.claim(USER_ID, SyncType.WORKOUTS)

    async def test_claims_are_per_user(self, db_path):
        repo = SyncStatusRepository(db_path)
        await repo.claim(USER_ID, SyncType.FULL)
        other = await repo.claim("someone-else", SyncType.FULL)
        assert other.id is not None

    async def test_stage_rows_do_not_conflict_with_their_parent(self, db_path):
        repo = SyncStatusRepository(db_path)
        master = await repo.claim(USER_ID, SyncType.FULL)
        stage = await repo.claim(USER_ID, SyncType.EXERCISES, parent_id=master.id)

        assert stage.parent_id == master.id
        assert await repo.has_active(USER_ID)

    async def test_finalized_run_frees_the_slot(self, db_path):
        repo = SyncStatusRepository(db_path)
        run = await repo.claim(USER_ID, SyncType.ROUTINES)
        await repo.finalize(run.id, SyncState.COMPLETED, items_synced=4, total_items=4)

        again = await repo.claim(USER_ID, SyncType.ROUTINES)
        stored = await repo.get(run.id)
        assert again.id != run.id
        assert stored.status == SyncState.COMPLETED
        assert stored.completed_at is not None

    async def test_finalize_happens_once(self, db_path):
        repo = SyncStatusRepository(db_path)
        run = await repo.claim(USER_ID, SyncType.ROUTINES)
        await repo.finalize(run.id, SyncState.FAILED, error_message="first")
        await repo.finalize(run.id, SyncState.COMPLETED, error_message=None)

        stored = await repo.get(run.id)
        assert stored.status == SyncState.FAILED
        assert stored.error_message == "first"

    async def test_fail_active_marks_every_open_row(self, db_path):
        repo = SyncStatusRepository(db_path)
        master = await repo.claim(USER_ID, SyncType.FULL)
        await repo.claim(USER_ID, SyncType.EXERCISES, parent_id=master.id)

        assert await repo.fail_active(USER_ID, "Sync interrupted") == 2
        assert not await repo.has_active(USER_ID)
        stored = await repo.get(master.id)
        assert stored.error_message == "Sync interrupted"

    async def test_latest_filters_by_type(self, db_path):
        repo = SyncStatusRepository(db_path)
        run = await repo.claim(USER_ID, SyncType.EXERCISES)
        await repo.finalize(run.id, SyncState.COMPLETED)

        assert (await repo.latest(USER_ID, [SyncType.EXERCISES])).id == run.id
        assert await repo.latest(USER_ID, [SyncType.WORKOUTS]) is None


class TestGeneratedRoutineRepository:
    """Tests for stored generation results."""

    async def test_mark_exported_only_once(self, db_path):
        repo = GeneratedRoutineRepository(db_path)
        routine_id = await repo.create(
            GeneratedRoutine(user_id=USER_ID, routines=[Routine(title="A", exercises=[])])
        )

        assert await repo.mark_exported(routine_id, "hevy-1")
        assert not await repo.mark_exported(routine_id, "hevy-2")

        stored = await repo.get(routine_id)
        assert stored.exported_to_hevy
        assert stored.hevy_routine_id == "hevy-1"

    async def test_list_is_newest_first(self, db_path):
        repo = GeneratedRoutineRepository(db_path)
        first = await repo.create(GeneratedRoutine(user_id=USER_ID, routines=[]))
        second = await repo.create(GeneratedRoutine(user_id=USER_ID, routines=[]))

        listed = await repo.list_for_user(USER_ID)
        assert [g.id for g in listed] == [second, first]


class TestErrorLogRepository:
    """Tests for the diagnostic error log."""

    async def test_filters_and_pagination(self, db_path):
        repo = ErrorLogRepository(db_path)
        for i in range(3):
            await repo.create(ErrorLog(type="ai_json_parse_error", error=f"bad {i}"))
        await repo.create(ErrorLog(type="other", error="x"))

        logs, total = await repo.list_logs(type="ai_json_parse_error", page=1, limit=2)
        assert total == 3
        assert len(logs) == 2
        assert logs[0].error == "bad 2"

        logs, _ = await repo.list_logs(type="ai_json_parse_error", page=2, limit=2)
        assert [log.error for log in logs] == ["bad 0"]

    async def test_resolve_and_reopen(self, db_path):
        repo = ErrorLogRepository(db_path)
        log_id = await repo.create(ErrorLog(type="other", error="x", context={"a": 1}))

        resolved = await repo.set_resolved(log_id, True)
        assert resolved.is_resolved
        assert resolved.resolved_at is not None
        assert resolved.context == {"a": 1}

        reopened = await repo.set_resolved(log_id, False)
        assert not reopened.is_resolved
        assert reopened.resolved_at is None

        _, unresolved = await repo.list_logs(resolved=False)
        assert unresolved == 1
