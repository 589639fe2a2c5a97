"""Transcription module for Scribe2Me."""

from .base import AbstractInferenceEngine
from ..models.transcription import Segment, TranscriptionResult
from .formatter import SegmentFormatter, format_srt_time
from .factory import create_engine, locate_model

__all__ = [
    "AbstractInferenceEngine",
    "Segment",
    "TranscriptionResult",
    "SegmentFormatter",
    "format_srt_time",
    "create_engine",
    "locate_model",
]
