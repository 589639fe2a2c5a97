"""Google Speech-to-Text inference engine."""

import logging
from datetime import timedelta
from typing import List, Optional

import numpy as np
from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

from .base import AbstractInferenceEngine
from ..models.transcription import Segment, TranscriptionResult

logger = logging.getLogger(__name__)


def duration_to_units(value: Optional[timedelta]) -> int:
    """Convert a protobuf duration (exposed as timedelta) to centiseconds."""
    if value is None:
        return 0
    return int(round(value.total_seconds() * 100))


def pcm_float_to_int16_bytes(samples: np.ndarray) -> bytes:
    """Convert float32 samples in [-1, 1] into LINEAR16 bytes."""
    clipped = np.clip(samples, -1.0, 1.0)
    return (clipped * 32767).astype(np.int16).tobytes()


class GoogleSpeechEngine(AbstractInferenceEngine):
    """Google Speech-to-Text API engine.

    The "model" is the service account credentials file. Each recognition
    result becomes one segment, bounded by its first and last word offsets.
    """

    name = "Google Speech-to-Text"

    def __init__(self,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 timeout: float = 120.0):
        super().__init__(language)
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.timeout = timeout
        self.client = None
        self.project_id = None
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            # Word offsets give us segment boundaries
            enable_word_time_offsets=True,
            model="latest_long",
        )

    def load_model(self, model_ref: str) -> None:
        """Load service account credentials from ``model_ref`` and build a client."""
        logger.info(f"Loading Google credentials from: {model_ref}")
        credentials = service_account.Credentials.from_service_account_file(model_ref)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

    @property
    def is_loaded(self) -> bool:
        return self.client is not None

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        if self.client is None:
            raise RuntimeError("Google Speech client not initialized")

        audio = speech.RecognitionAudio(content=pcm_float_to_int16_bytes(samples))
        try:
            response = self.client.recognize(config=self.config, audio=audio, timeout=self.timeout)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded")
            raise RuntimeError(f"Google Speech recognize timeout: {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable")
            raise RuntimeError(f"Google Speech service unavailable: {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error: %s", e)
            raise RuntimeError(f"Google Speech API error: {e}") from e

        return self._extract_result(response)

    def _extract_result(self, response) -> TranscriptionResult:
        segments: List[Segment] = []
        texts: List[str] = []
        previous_end = 0

        for recognition_result in response.results:
            if not recognition_result.alternatives:
                continue
            alternative = recognition_result.alternatives[0]
            words = list(alternative.words)
            if words:
                start = duration_to_units(words[0].start_time)
                end = duration_to_units(words[-1].end_time)
            else:
                start = previous_end
                end = duration_to_units(recognition_result.result_end_time)

            segments.append(Segment(index=len(segments), start_units=start,
                                    end_units=end, text=alternative.transcript))
            texts.append(alternative.transcript.strip())
            previous_end = end

        if not segments:
            logger.debug("--- NO SPEECH DETECTED ---")
        return TranscriptionResult(text=" ".join(texts), segments=segments)

    def release(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None

    def system_info(self) -> str:
        return f"{super().system_info()} | language={self.language} enhanced={self.use_enhanced}"
