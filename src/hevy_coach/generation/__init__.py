"""Workout program generation."""

from .generator import ProgramGenerator, validate_request

__all__ = ["ProgramGenerator", "validate_request"]
