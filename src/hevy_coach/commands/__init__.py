"""CLI commands for hevy-coach."""

from .generate import generate
from .init import init
from .profile import profile
from .routines import export, routines
from .serve import serve
from .sync import sync, sync_cleanup, sync_status

__all__ = [
    "export",
    "generate",
    "init",
    "profile",
    "routines",
    "serve",
    "sync",
    "sync_cleanup",
    "sync_status",
]
