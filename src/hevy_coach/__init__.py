"""hevy-coach: Hevy sync and AI-generated workout programs."""

__version__ = "0.1.0"
