"""Workout program generation with OpenAI.

Flow for one request: validate parameters, build the training context, prompt
the model (up to ``generation_max_attempts`` times with a linearly growing
pause), validate the routines it returns and persist the accepted result.
Nothing is stored until an attempt succeeds.
"""

import asyncio
import json
from pathlib import Path
from typing import Awaitable, Callable

import openai
import structlog

from ..analysis.training_context import TrainingContextBuilder
from ..config import Settings
from ..db.repositories import ErrorLogRepository, GeneratedRoutineRepository
from ..errors import (
    ConfigurationError,
    GenerationError,
    GenerationErrorKind,
    GenerationFailedError,
    ValidationError,
)
from ..models.error_log import ErrorLog
from ..models.routine import GeneratedRoutine, GenerationRequest, ProgressionType, Routine
from .json_repair import extract_json, parse_json
from .prompts import SYSTEM_PROMPT, build_user_prompt
from .transformer import expand_weeks, validate_exercise_ids

logger = structlog.get_logger(__name__)

WORKOUTS_PER_WEEK_RANGE = (1, 7)
SESSION_DURATION_RANGE = (30, 180)
DURATION_WEEKS_RANGE = (1, 12)

PARSE_ERROR_LOG_TYPE = "ai_json_parse_error"
RAW_RESPONSE_LOG_LIMIT = 10_000


def _check_range(name: str, value, bounds: tuple[int, int], unit: str = "") -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number")
    if not low <= value <= high:
        suffix = f" {unit}" if unit else ""
        raise ValidationError(f"{name} must be between {low} and {high}{suffix}")


def validate_request(request: GenerationRequest) -> None:
    """Reject out-of-range parameters before anything external is called.

    Raises:
        ValidationError: A parameter is missing or out of range.
    """
    _check_range("Workouts per week", request.workouts_per_week, WORKOUTS_PER_WEEK_RANGE)
    _check_range(
        "Session duration", request.session_duration, SESSION_DURATION_RANGE, "minutes"
    )
    _check_range("Duration", request.duration, DURATION_WEEKS_RANGE, "weeks")
    try:
        ProgressionType(request.progression_type)
    except ValueError as e:
        raise ValidationError(
            "Progression type must be one of: linear, undulating, block"
        ) from e


class ProgramGenerator:
    """Generates and stores workout programs for a user."""

    def __init__(
        self,
        settings: Settings,
        db_path: Path | None = None,
        client: openai.AsyncOpenAI | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self._client = client
        self._sleep = sleep
        self.context_builder = TrainingContextBuilder(db_path)
        self.routine_repo = GeneratedRoutineRepository(db_path)
        self.error_repo = ErrorLogRepository(db_path)

    @property
    def client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ConfigurationError("AI service not configured")
            self._client = openai.AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._client

    async def generate(self, user_id: str, request: GenerationRequest) -> GeneratedRoutine:
        """Generate a program and persist it.

        Raises:
            ValidationError: Bad parameters, or no exercises have been synced.
            ConfigurationError: No OpenAI API key.
            NotFoundError: The user has no profile.
            GenerationFailedError: Every attempt failed.
        """
        validate_request(request)
        client = self.client
        log = logger.bind(user_id=user_id)

        context = await self.context_builder.build(user_id)
        if context.total_exercises == 0:
            raise ValidationError(
                "No exercises found. Please sync your exercises from Hevy first."
            )

        prompt = build_user_prompt(context, request)
        available_ids = context.available_exercise_ids
        max_attempts = self.settings.generation_max_attempts

        attempt = 0
        while True:
            attempt += 1
            try:
                routines, payload = await self._attempt(
                    client, user_id, prompt, attempt, available_ids
                )
                break
            except GenerationError as e:
                log.warning(
                    "generation_attempt_failed",
                    attempt=attempt,
                    kind=e.kind.value,
                    error=e.message,
                )
                if attempt >= max_attempts:
                    log.error("generation_failed", attempts=attempt, kind=e.kind.value)
                    raise GenerationFailedError(e, attempt) from e
                await self._sleep(attempt)

        if request.expand_weeks and request.duration > 1 and len(routines) == 1:
            routines = expand_weeks(routines[0], request.duration, request.progression_type)

        generated = GeneratedRoutine(
            user_id=user_id,
            routines=routines,
            ai_context={
                "model": self.settings.openai_model,
                "prompt": prompt,
                "reasoning": payload.get("reasoning") or "",
                "periodization_notes": payload.get("periodization_notes") or "",
                "training_context": context.to_dict(),
                "parameters": request.to_dict(),
                "attempts": attempt,
            },
        )
        routine_id = await self.routine_repo.create(generated)
        log.info(
            "program_generated",
            routine_id=routine_id,
            routines=len(routines),
            attempts=attempt,
        )
        return await self.routine_repo.get(routine_id)

    async def _attempt(
        self,
        client: openai.AsyncOpenAI,
        user_id: str,
        prompt: str,
        attempt: int,
        available_ids: set[str],
    ) -> tuple[list[Routine], dict]:
        """One model call plus parsing and validation of its output."""
        try:
            completion = await client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=self.settings.openai_temperature,
                max_tokens=self.settings.openai_max_tokens,
                seed=attempt,
            )
        except openai.OpenAIError as e:
            raise GenerationError(GenerationErrorKind.UPSTREAM, str(e)) from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise GenerationError(
                GenerationErrorKind.EMPTY_RESPONSE, "Empty response from AI"
            )

        try:
            payload = parse_json(extract_json(content) or content)
        except json.JSONDecodeError as e:
            await self.error_repo.create(
                ErrorLog(
                    type=PARSE_ERROR_LOG_TYPE,
                    error=str(e),
                    user_id=user_id,
                    context={
                        "attempt": attempt,
                        "raw_response": content[:RAW_RESPONSE_LOG_LIMIT],
                    },
                )
            )
            raise GenerationError(
                GenerationErrorKind.PARSE, f"JSON parse failed: {e}"
            ) from e

        raw_routines = payload.get("routines") if isinstance(payload, dict) else None
        if not isinstance(raw_routines, list) or not raw_routines:
            raise GenerationError(
                GenerationErrorKind.STRUCTURE, "Invalid response structure from AI"
            )
        try:
            routines = [Routine.from_dict(r) for r in raw_routines]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise GenerationError(
                GenerationErrorKind.STRUCTURE, f"Invalid response structure from AI: {e}"
            ) from e

        invalid: list[str] = []
        for routine in routines:
            for exercise_id in validate_exercise_ids(routine, available_ids).invalid_ids:
                if exercise_id not in invalid:
                    invalid.append(exercise_id)
        if invalid:
            raise GenerationError(
                GenerationErrorKind.INVALID_EXERCISE_IDS,
                f"Invalid exercise IDs: {', '.join(invalid)}",
            )

        return routines, payload
