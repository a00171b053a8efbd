"""Async client for the Hevy public API.

Every request carries the server-held API key in the ``api-key`` header. A
missing key fails with ``ConfigurationError`` before any network I/O. Non-2xx
responses and transport failures are normalized to ``HevyApiError``. There is
no retry logic here; callers decide what to do with a failure.

Usage:
    async with HevyClient(settings) as hevy:
        page = await hevy.list_workouts(page=1, page_size=10)
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..config import Settings
from ..errors import ConfigurationError, HevyApiError

logger = structlog.get_logger(__name__)


class HevyClient:
    """Thin wrapper over ``httpx.AsyncClient`` plus typed endpoint helpers."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = settings.hevy_api_key
        self.base_url = settings.hevy_base_url.rstrip("/")
        self._timeout = httpx.Timeout(settings.hevy_timeout_seconds)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HevyClient:
        self._open()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _open(self) -> httpx.AsyncClient:
        # No await between the check and the assignment: concurrent first
        # requests share one client.
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"accept": "application/json"},
            )
        return self._client

    # -- raw verbs ---------------------------------------------------------

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Any) -> Any:
        return await self._request("POST", path, json=body)

    async def put(self, path: str, body: Any) -> Any:
        return await self._request("PUT", path, json=body)

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        if not self.api_key:
            raise ConfigurationError("HEVY_API_KEY is not configured")
        # Used outside ``async with``: opened lazily, closed by aclose()
        client = self._open()

        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=json,
                headers={"api-key": self.api_key},
            )
        except httpx.HTTPError as exc:
            logger.error("hevy_request_failed", method=method, path=path, error=str(exc))
            raise HevyApiError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            body = _safe_json(response)
            message = None
            code = None
            if isinstance(body, dict):
                message = body.get("message") or body.get("error")
                code = body.get("code")
            message = message or response.reason_phrase or "An unknown error occurred"
            logger.warning(
                "hevy_unexpected_status",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise HevyApiError(message, status_code=response.status_code, code=code)

        if not response.content:
            return None
        return _safe_json(response)

    # -- workouts ----------------------------------------------------------

    async def list_workouts(self, page: int = 1, page_size: int = 10) -> dict:
        return await self.get("/workouts", {"page": page, "pageSize": page_size})

    async def get_workout(self, workout_id: str) -> dict:
        return await self.get(f"/workouts/{workout_id}")

    async def get_workout_count(self) -> int:
        data = await self.get("/workouts/count")
        return int((data or {}).get("workout_count", 0))

    async def get_workout_dates(self, start_date: str, end_date: str) -> list[str]:
        """Dates (YYYY-MM-DD) on which workouts changed between the two dates."""
        data = await self.get(
            "/workouts/events", {"startDate": start_date, "endDate": end_date}
        )
        return list((data or {}).get("workout_dates") or [])

    async def create_workout(self, workout: dict) -> dict:
        return await self.post("/workouts", workout)

    async def update_workout(self, workout_id: str, workout: dict) -> dict:
        return await self.put(f"/workouts/{workout_id}", workout)

    # -- routines ----------------------------------------------------------

    async def list_routines(self, page: int = 1, page_size: int = 10) -> dict:
        return await self.get("/routines", {"page": page, "pageSize": page_size})

    async def get_routine(self, routine_id: str) -> dict:
        data = await self.get(f"/routines/{routine_id}")
        return _unwrap(data, "routine")

    async def create_routine(self, request: dict) -> dict:
        """Create a routine; returns the created routine (with its Hevy ``id``)."""
        data = await self.post("/routines", request)
        return _unwrap(data, "routine")

    async def update_routine(self, routine_id: str, request: dict) -> dict:
        data = await self.put(f"/routines/{routine_id}", request)
        return _unwrap(data, "routine")

    # -- routine folders ---------------------------------------------------

    async def list_routine_folders(self, page: int = 1, page_size: int = 10) -> dict:
        return await self.get("/routine_folders", {"page": page, "pageSize": page_size})

    async def get_routine_folder(self, folder_id: str) -> dict:
        return await self.get(f"/routine_folders/{folder_id}")

    # -- exercise templates ------------------------------------------------

    async def list_exercise_templates(self, page: int = 1, page_size: int = 100) -> dict:
        return await self.get(
            "/exercise_templates", {"page": page, "pageSize": page_size}
        )

    async def get_exercise_template(self, template_id: str) -> dict:
        return await self.get(f"/exercise_templates/{template_id}")


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _unwrap(data: Any, key: str) -> dict:
    """Hevy wraps some single-resource responses as ``{key: obj}`` or ``{key: [obj]}``."""
    if isinstance(data, dict) and key in data:
        data = data[key]
    if isinstance(data, list):
        data = data[0] if data else {}
    return data or {}
