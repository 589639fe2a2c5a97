"""Trigger and outcome models for the single-flight guard."""

from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class Benchmark:
    """Run the engine's micro benchmarks."""
    kind = "benchmark"


@dataclass(frozen=True)
class TranscribeSample:
    """Transcribe the first bundled sample."""
    kind = "sample"


@dataclass(frozen=True)
class TranscribeFile:
    """Transcribe a user-selected file in any container/codec."""
    path: Path
    kind = "file"


@dataclass(frozen=True)
class TranscribeCapture:
    """Transcribe a just-finished live capture."""
    path: Path
    kind = "capture"


Trigger = Union[Benchmark, TranscribeSample, TranscribeFile, TranscribeCapture]


class RejectReason(Enum):
    """Why a trigger was not accepted."""
    NOT_READY = "not-ready"
    BUSY = "busy"
    RECORDING = "recording"


@dataclass(frozen=True)
class Accepted:
    """The trigger holds the engine; ``future`` resolves when the run ends."""
    trigger: Trigger
    future: Future

    @property
    def accepted(self) -> bool:
        return True

    def wait(self, timeout: Optional[float] = None):
        """Block until the run finishes and return its report (or None)."""
        return self.future.result(timeout=timeout)


@dataclass(frozen=True)
class Rejected:
    """The trigger was refused without any state change."""
    trigger: Trigger
    reason: RejectReason

    @property
    def accepted(self) -> bool:
        return False


Outcome = Union[Accepted, Rejected]
