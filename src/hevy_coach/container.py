"""Wiring of clients, repositories and services for one process."""

from pathlib import Path

import httpx
import openai

from .clients.hevy import HevyClient
from .config import Settings
from .db.repositories import ErrorLogRepository, GeneratedRoutineRepository
from .generation.generator import ProgramGenerator
from .services.export import ExportService
from .services.profile import ProfileService
from .sync.service import HevySyncService


class ServiceContainer:
    """Owns the shared Hevy client and hands out services bound to it.

    The web app keeps one container for its lifetime; CLI commands open one
    per invocation with ``async with``.
    """

    def __init__(
        self,
        settings: Settings,
        db_path: Path | None = None,
        hevy_transport: httpx.AsyncBaseTransport | None = None,
        openai_client: openai.AsyncOpenAI | None = None,
    ):
        self.settings = settings
        self.db_path = db_path or settings.db_path
        self.hevy = HevyClient(settings, transport=hevy_transport)
        self.generator = ProgramGenerator(settings, self.db_path, client=openai_client)
        self.exports = ExportService(self.hevy, self.db_path)
        self.profiles = ProfileService(self.db_path)
        self.generated_routines = GeneratedRoutineRepository(self.db_path)
        self.error_logs = ErrorLogRepository(self.db_path)

    def sync_service(self, user_id: str) -> HevySyncService:
        return HevySyncService(
            user_id,
            self.hevy,
            self.db_path,
            page_delay=self.settings.sync_page_delay_seconds,
        )

    async def __aenter__(self) -> "ServiceContainer":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.hevy.aclose()
