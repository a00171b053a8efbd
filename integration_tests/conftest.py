"""Pytest configuration for integration tests.

These run against the real Hevy and OpenAI APIs and are skipped unless
``HEVY_API_KEY`` (and, for generation, ``OPENAI_API_KEY``) are set.
"""

import pytest

from hevy_coach.config import Settings
from hevy_coach.db import init_db


# Mark all tests in this directory as integration tests
def pytest_collection_modifyitems(items):
    """Add integration marker to all tests in this directory."""
    for item in items:
        if "integration_tests" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def live_settings(tmp_path):
    """Settings from the environment, with a throwaway data directory."""
    settings = Settings(data_dir=tmp_path)
    if not settings.hevy_api_key:
        pytest.skip("HEVY_API_KEY not set")
    return settings


@pytest.fixture
async def live_db(live_settings):
    path = live_settings.db_path
    await init_db(path)
    return path
