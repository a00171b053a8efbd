"""Diagnostic error log records."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ErrorLog:
    """A failure kept for later triage (e.g. unparsable model output)."""

    type: str
    error: str
    user_id: str | None = None
    context: dict = field(default_factory=dict)
    is_resolved: bool = False
    created_at: datetime | None = None
    resolved_at: datetime | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "error": self.error,
            "user_id": self.user_id,
            "context": self.context,
            "is_resolved": self.is_resolved,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }
