"""Faster Whisper (CTranslate2) inference engine."""

import os
import logging
from typing import List, Optional

import numpy as np

from .base import AbstractInferenceEngine
from ..models.transcription import Segment, TranscriptionResult

logger = logging.getLogger(__name__)


def seconds_to_units(seconds: float) -> int:
    """Convert seconds to the engine's native centisecond units."""
    return int(round(seconds * 100))


class FasterWhisperEngine(AbstractInferenceEngine):
    """Local Whisper engine backed by faster-whisper.

    Segment boundaries come back in seconds and are converted to
    centiseconds so every engine speaks the same time unit.
    """

    name = "faster-whisper"

    def __init__(self,
                 device: str = "cpu",
                 compute_type: str = "int8",
                 language: Optional[str] = None,
                 model_cache: str = ""):
        super().__init__(language)
        self.device = device
        self.compute_type = compute_type
        self.model_cache = model_cache
        self.model = None
        self.model_ref: Optional[str] = None

    def load_model(self, model_ref: str) -> None:
        # Set cache paths BEFORE importing faster_whisper
        if self.model_cache:
            os.environ['HF_HOME'] = self.model_cache
            os.environ['HF_HUB_CACHE'] = os.path.join(self.model_cache, 'hub')

        from faster_whisper import WhisperModel

        logger.info(f"Loading Faster Whisper model: {model_ref} on {self.device}...")
        self.model = WhisperModel(model_ref, device=self.device, compute_type=self.compute_type)
        self.model_ref = model_ref
        logger.info("Model loaded and ready")

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        if self.model is None:
            raise RuntimeError("No model loaded")

        raw_segments, info = self.model.transcribe(
            samples,
            language=self.language,
            vad_filter=False
        )
        # faster-whisper yields lazily; decoding happens while iterating
        raw_segments = list(raw_segments)

        segments: List[Segment] = [
            Segment(
                index=i,
                start_units=seconds_to_units(seg.start),
                end_units=seconds_to_units(seg.end),
                text=seg.text,
            )
            for i, seg in enumerate(raw_segments)
        ]
        text = "".join(seg.text for seg in raw_segments)

        language = getattr(info, "language", None)
        logger.debug(f"Transcribed {len(segments)} segments (language={language})")
        return TranscriptionResult(text=text, segments=segments)

    def release(self) -> None:
        self.model = None
        self.model_ref = None

    def system_info(self) -> str:
        return f"{super().system_info()} | device={self.device} compute_type={self.compute_type}"
