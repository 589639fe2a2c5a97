"""Console user interface for Scribe2Me."""

from .console_screen import ConsoleScreen

__all__ = ["ConsoleScreen"]
