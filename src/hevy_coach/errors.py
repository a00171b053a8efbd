"""Exception hierarchy shared by services, the web layer and the CLI."""

from enum import Enum


class HevyCoachError(Exception):
    """Base error. ``status_code`` is the HTTP status the web layer responds with."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, include_details: bool = True) -> dict:
        body = {"error": self.message}
        if include_details and self.details:
            body["details"] = self.details
        return body


class ConfigurationError(HevyCoachError):
    """A required server-side credential or setting is missing."""

    status_code = 503


class AuthorizationError(HevyCoachError):
    status_code = 401


class ForbiddenError(HevyCoachError):
    status_code = 403


class ValidationError(HevyCoachError):
    status_code = 400


class NotFoundError(HevyCoachError):
    status_code = 404


class ConflictError(HevyCoachError):
    status_code = 409


class SyncInProgressError(ConflictError):
    def __init__(self, message: str = "Sync already in progress"):
        super().__init__(message)


class HevyApiError(HevyCoachError):
    """Normalized failure from the Hevy API (non-2xx response or transport error)."""

    def __init__(self, message: str, status_code: int = 500, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    def __str__(self) -> str:
        return f"Hevy API error ({self.status_code}): {self.message}"


class GenerationErrorKind(str, Enum):
    """Where a generation attempt failed."""

    EMPTY_RESPONSE = "empty_response"
    PARSE = "parse"
    STRUCTURE = "structure"
    INVALID_EXERCISE_IDS = "invalid_exercise_ids"
    UPSTREAM = "upstream"


USER_MESSAGES = {
    GenerationErrorKind.PARSE: (
        "The AI returned a response we could not read. Please try again."
    ),
    GenerationErrorKind.INVALID_EXERCISE_IDS: (
        "The AI referenced exercises that are not in your library. "
        "Try syncing your exercises from Hevy and generate again."
    ),
    GenerationErrorKind.STRUCTURE: (
        "The AI returned an incomplete program. Please try again."
    ),
}

DEFAULT_USER_MESSAGE = (
    "We could not generate your program right now. Please try again later."
)


class GenerationError(HevyCoachError):
    """A single failed generation attempt, tagged with what went wrong."""

    status_code = 502

    def __init__(self, kind: GenerationErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.kind, DEFAULT_USER_MESSAGE)


class GenerationFailedError(HevyCoachError):
    """All generation attempts were exhausted.

    ``message`` is the user-facing text picked from the last attempt's kind;
    ``details`` carries the technical message.
    """

    status_code = 500

    def __init__(self, last_error: GenerationError, attempts: int):
        super().__init__(last_error.user_message, details=last_error.message)
        self.last_error = last_error
        self.attempts = attempts
