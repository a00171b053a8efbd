"""Training history analysis."""

from .training_context import TrainingContext, TrainingContextBuilder

__all__ = ["TrainingContext", "TrainingContextBuilder"]
