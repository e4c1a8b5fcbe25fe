"""pomolog: pomodoro sessions with timezone-aware completion statistics."""

from .cli import main

__version__ = "0.1.0"

__all__ = ["main", "__version__"]
