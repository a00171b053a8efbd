"""Application services."""

from .export import ExportService
from .profile import ProfileService

__all__ = ["ExportService", "ProfileService"]
