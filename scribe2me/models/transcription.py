"""Transcription-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class Segment:
    """One timed span of text returned by the inference engine.

    Times are in the engine's native unit, centiseconds. Only ``index``
    ordering is guaranteed; neighbouring segments may overlap.
    """
    index: int
    start_units: int
    end_units: int
    text: str


@dataclass(frozen=True)
class TranscriptionResult:
    """Full text and ordered segments produced by a single inference call."""
    text: str
    segments: List[Segment] = field(default_factory=list)

    @property
    def has_segments(self) -> bool:
        return len(self.segments) > 0


class OutputMode(Enum):
    """Which materialized form a run should produce."""
    SUBTITLES = "subtitles"
    TEXT = "text"


class DocumentKind(Enum):
    """Kind of formatted document, valued by its file extension."""
    SUBTITLES = "srt"
    PLAIN_TEXT = "txt"

    @property
    def extension(self) -> str:
        return self.value


@dataclass(frozen=True)
class Document:
    """A formatted transcription ready to be persisted."""
    kind: DocumentKind
    content: str


class PipelineStage(Enum):
    """Ordered stages of a pipeline run."""
    DECODE = "decode"
    TRANSCODE = "transcode"
    INFER = "infer"
    FORMAT = "format"
    PERSIST = "persist"


@dataclass
class PipelineReport:
    """Outcome of one pipeline run that got past inference."""
    result: TranscriptionResult
    document: Optional[Document]
    elapsed_ms: int
    saved_path: Optional[Path] = None
    persist_error: Optional[str] = None
    stages_completed: List[PipelineStage] = field(default_factory=list)

    @property
    def no_content(self) -> bool:
        return self.document is None
