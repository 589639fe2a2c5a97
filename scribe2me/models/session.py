"""Session-related data models."""

from dataclasses import dataclass
from enum import Enum


class GateState(Enum):
    """Readiness of the inference engine.

    IDLE: no model loaded (initial, loading, or after a failed load).
    READY: a model is loaded and no run is in flight.
    BUSY: a run holds the engine exclusively.
    """
    IDLE = "idle"
    READY = "ready"
    BUSY = "busy"


@dataclass(frozen=True)
class SessionSnapshot:
    """The three fields the presentation layer observes."""
    ready: bool
    recording: bool
    event_log: str
