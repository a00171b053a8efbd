"""HTTP API for hevy-coach."""

from .app import create_app

__all__ = ["create_app"]
