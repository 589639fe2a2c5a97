"""Audio-related data models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class AudioOrigin(Enum):
    """Where an audio input came from."""
    LIVE_CAPTURE = "live-capture"
    UPLOADED_FILE = "uploaded-file"
    BUNDLED_SAMPLE = "bundled-sample"

    @property
    def is_canonical(self) -> bool:
        """Captured audio and bundled samples are already 16 kHz mono PCM."""
        return self is not AudioOrigin.UPLOADED_FILE


@dataclass(frozen=True)
class AudioInput:
    """A byte source plus its declared origin, consumed once by a pipeline run."""
    path: Path
    origin: AudioOrigin

