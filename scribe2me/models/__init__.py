"""Data models for the Scribe2Me application."""

from .audio import AudioOrigin, AudioInput
from .transcription import (
    Segment,
    TranscriptionResult,
    OutputMode,
    DocumentKind,
    Document,
    PipelineStage,
    PipelineReport,
)
from .session import GateState, SessionSnapshot
from .events import (
    Benchmark,
    TranscribeSample,
    TranscribeFile,
    TranscribeCapture,
    Trigger,
    RejectReason,
    Accepted,
    Rejected,
    Outcome,
)

__all__ = [
    "AudioOrigin",
    "AudioInput",
    "Segment",
    "TranscriptionResult",
    "OutputMode",
    "DocumentKind",
    "Document",
    "PipelineStage",
    "PipelineReport",
    "GateState",
    "SessionSnapshot",
    # Triggers and outcomes
    "Benchmark",
    "TranscribeSample",
    "TranscribeFile",
    "TranscribeCapture",
    "Trigger",
    "RejectReason",
    "Accepted",
    "Rejected",
    "Outcome",
]
