"""Segment formatter: engine output to subtitle cues or plain text."""

import logging
from typing import List

from ..exceptions import NoContent
from ..models.transcription import (
    Document,
    DocumentKind,
    OutputMode,
    Segment,
    TranscriptionResult,
)

logger = logging.getLogger(__name__)

# Engine time units are centiseconds
MS_PER_UNIT = 10


def format_srt_time(units: int) -> str:
    """Render centiseconds as ``HH:MM:SS,mmm``.

    Hours are not wrapped, so long recordings may exceed 24 hours.
    """
    time_ms = max(int(units), 0) * MS_PER_UNIT
    seconds = time_ms // 1000
    ms = time_ms % 1000
    s = seconds % 60
    minutes = (seconds // 60) % 60
    h = seconds // 3600
    return f"{h:02d}:{minutes:02d}:{s:02d},{ms:03d}"


def format_cue(number: int, segment: Segment) -> str:
    """One numbered SRT cue block without the trailing separator."""
    return (f"{number}\n"
            f"{format_srt_time(segment.start_units)} --> {format_srt_time(segment.end_units)}\n"
            f"{segment.text.strip()}\n")


class SegmentFormatter:
    """Converts a TranscriptionResult into a Document.

    The whole result is consumed before anything is returned, so a caller
    never observes a partially formatted document.
    """

    def format(self, result: TranscriptionResult, mode: OutputMode = OutputMode.SUBTITLES) -> Document:
        """Format a result.

        Raises:
            NoContent: If neither segments nor full text carry any speech
        """
        if mode is OutputMode.SUBTITLES and any(seg.text.strip() for seg in result.segments):
            return Document(kind=DocumentKind.SUBTITLES, content=self.to_srt(result.segments))

        text = self.to_plain_text(result)
        if not text:
            raise NoContent()
        return Document(kind=DocumentKind.PLAIN_TEXT, content=text)

    def to_srt(self, segments: List[Segment]) -> str:
        """Cues numbered from 1 in index order, separated by one blank line.

        Segments with no text after trimming get no cue.
        """
        ordered = sorted((seg for seg in segments if seg.text.strip()), key=lambda seg: seg.index)
        cues = [format_cue(number, seg) for number, seg in enumerate(ordered, 1)]
        logger.debug(f"Formatted {len(cues)} subtitle cues")
        return "\n".join(cues)

    def to_plain_text(self, result: TranscriptionResult) -> str:
        text = result.text.strip()
        if not text and result.has_segments:
            # Engines that only fill segments still yield a text document
            ordered = sorted(result.segments, key=lambda seg: seg.index)
            text = " ".join(seg.text.strip() for seg in ordered if seg.text.strip())
        return text
