"""Scribe2Me - offline speech-to-subtitles transcription."""

__version__ = "0.1.0"
