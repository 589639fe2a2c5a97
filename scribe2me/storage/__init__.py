"""Storage layer for Scribe2Me."""

from .file_manager import FileManager

__all__ = ["FileManager"]
