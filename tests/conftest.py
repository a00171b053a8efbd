"""Pytest configuration and fixtures."""

import json
from types import SimpleNamespace
from urllib.parse import parse_qs

import httpx
import pytest

from hevy_coach.clients.hevy import HevyClient
from hevy_coach.config import Settings
from hevy_coach.db import UserProfileRepository, init_db
from hevy_coach.models.user_profile import ExperienceLevel, UserProfile

USER_ID = "user-1"


def make_template(
    index: int,
    muscle: str | None = "chest",
    equipment: str | None = "barbell",
    title: str | None = None,
) -> dict:
    """An exercise template payload as Hevy returns it."""
    return {
        "id": f"EX{index:03d}",
        "title": title or f"Exercise {index}",
        "type": "weight_reps",
        "primary_muscle_group": muscle,
        "secondary_muscle_groups": [],
        "equipment": equipment,
        "is_custom": False,
    }


def make_workout(workout_id: str, start_time: str, exercises: list[dict] | None = None) -> dict:
    return {
        "id": workout_id,
        "title": f"Workout {workout_id}",
        "start_time": start_time,
        "end_time": start_time,
        "exercises": exercises or [],
    }


def working_sets(template_id: str, weight: float, reps: int, count: int = 3) -> dict:
    """A logged exercise with ``count`` identical normal sets."""
    return {
        "exercise_template_id": template_id,
        "title": template_id,
        "sets": [
            {"type": "normal", "weight_kg": weight, "reps": reps} for _ in range(count)
        ],
    }


class FakeHevy:
    """In-memory stand-in for the Hevy REST API, served through ``httpx.MockTransport``.

    ``failures`` maps a path (without the ``/v1`` prefix) to a status code;
    requests to that path answer with that status and an error body.
    ``page_failures`` does the same for one page of a list endpoint.
    """

    def __init__(self):
        self.exercise_templates: list[dict] = []
        self.routine_folders: list[dict] = []
        self.routines: list[dict] = []
        self.workouts: list[dict] = []
        self.workout_dates: list[str] = []
        self.failures: dict[str, int] = {}
        self.page_failures: dict[tuple[str, int], int] = {}
        self.requests: list[httpx.Request] = []
        self.created_routines: list[dict] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self, prefix: str = "") -> list[str]:
        return [
            r.url.path.removeprefix("/v1")
            for r in self.requests
            if r.url.path.removeprefix("/v1").startswith(prefix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1")
        query = {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}

        if path in self.failures:
            return httpx.Response(self.failures[path], json={"error": f"failure at {path}"})

        page = int(query.get("page", 1))
        size = int(query.get("pageSize", 10))
        if (path, page) in self.page_failures:
            return httpx.Response(
                self.page_failures[(path, page)], json={"message": f"page {page} unavailable"}
            )

        if path == "/exercise_templates":
            return httpx.Response(200, json=self._page("exercise_templates", page, size))
        if path.startswith("/exercise_templates/"):
            return self._detail(self.exercise_templates, path)
        if path == "/routine_folders":
            return httpx.Response(200, json=self._page("routine_folders", page, size))
        if path.startswith("/routine_folders/"):
            return self._detail(self.routine_folders, path)
        if path == "/routines" and request.method == "POST":
            body = json.loads(request.content)
            created = {"id": f"hevy-routine-{len(self.created_routines) + 1}", **body["routine"]}
            self.created_routines.append(body)
            return httpx.Response(201, json={"routine": [created]})
        if path == "/routines":
            return httpx.Response(200, json=self._page("routines", page, size))
        if path.startswith("/routines/"):
            response = self._detail(self.routines, path)
            if response.status_code == 200:
                return httpx.Response(200, json={"routine": response.json()})
            return response
        if path == "/workouts/count":
            return httpx.Response(200, json={"workout_count": len(self.workouts)})
        if path == "/workouts/events":
            return httpx.Response(200, json={"workout_dates": self.workout_dates})
        if path == "/workouts":
            return httpx.Response(200, json=self._page("workouts", page, size))
        if path.startswith("/workouts/"):
            return self._detail(self.workouts, path)
        return httpx.Response(404, json={"error": "Not found"})

    def _page(self, key: str, page: int, size: int) -> dict:
        items = getattr(self, key)
        page_count = max(1, -(-len(items) // size))
        start = (page - 1) * size
        return {"page": page, "page_count": page_count, key: items[start : start + size]}

    def _detail(self, items: list[dict], path: str) -> httpx.Response:
        item_id = path.rsplit("/", 1)[-1]
        for item in items:
            if str(item["id"]) == item_id:
                return httpx.Response(200, json=item)
        return httpx.Response(404, json={"error": "Not found"})


class FakeOpenAI:
    """Duck-typed ``AsyncOpenAI`` whose chat completions come from a queue.

    Each queued item is either response text or an exception to raise.
    """

    def __init__(self, responses: list | None = None):
        self.responses = list(responses or [])
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=response))]
        )


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a temporary data directory, ignoring any .env file."""
    return Settings(
        _env_file=None,
        hevy_api_key="test-hevy-key",
        openai_api_key="test-openai-key",
        data_dir=tmp_path,
        sync_page_delay_seconds=0,
    )


@pytest.fixture
async def db_path(settings):
    """An initialized database."""
    path = settings.db_path
    await init_db(path)
    return path


@pytest.fixture
def fake_hevy():
    return FakeHevy()


@pytest.fixture
async def hevy(settings, fake_hevy):
    async with HevyClient(settings, transport=fake_hevy.transport) as client:
        yield client


@pytest.fixture
def sample_profile():
    return UserProfile(
        user_id=USER_ID,
        age=32,
        weight=80.0,
        training_frequency=4,
        experience_level=ExperienceLevel.INTERMEDIATE,
        focus_areas=["strength", "hypertrophy"],
        injuries=["lower_back"],
    )


@pytest.fixture
async def stored_profile(db_path, sample_profile):
    return await UserProfileRepository(db_path).upsert(sample_profile)
