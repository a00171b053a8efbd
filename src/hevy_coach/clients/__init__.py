"""Clients for external services."""

from .hevy import HevyClient

__all__ = ["HevyClient"]
