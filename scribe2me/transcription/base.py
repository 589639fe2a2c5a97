"""Abstract base class for inference engines."""

import os
import platform
from abc import ABC, abstractmethod
from typing import Optional
import logging

import numpy as np

from ..models.transcription import TranscriptionResult
from . import benchmark

logger = logging.getLogger(__name__)


class AbstractInferenceEngine(ABC):
    """Abstract base class for speech inference engines.

    An engine loads one model, turns canonical PCM samples (float32, 16 kHz,
    mono) into a TranscriptionResult carrying both the full text and the
    timed segments in a single call, and releases its handle on shutdown.
    """

    name = "engine"

    def __init__(self, language: Optional[str] = None):
        """Initialize engine with language preference (None = auto-detect)."""
        self.language = language

    @abstractmethod
    def load_model(self, model_ref: str) -> None:
        """Load the model identified by ``model_ref``.

        Raises:
            Exception: any loader failure; the readiness gate wraps it.
        """
        pass

    @abstractmethod
    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        """Run inference over canonical PCM samples.

        Returns:
            TranscriptionResult with full text and segments in centiseconds
        """
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the loaded model handle."""
        pass

    @property
    def is_loaded(self) -> bool:
        return False

    def system_info(self) -> str:
        """Diagnostic description of the runtime, logged once at startup."""
        return (f"{self.name} | {platform.system()} {platform.machine()} | "
                f"Python {platform.python_version()} | numpy {np.__version__} | "
                f"CPUs: {os.cpu_count()}")

    def bench_memory(self, n_threads: int) -> str:
        """Memory bandwidth micro benchmark report."""
        return benchmark.bench_memcpy(n_threads)

    def bench_matmul(self, n_threads: int) -> str:
        """Matrix multiplication micro benchmark report."""
        return benchmark.bench_matmul(n_threads)
