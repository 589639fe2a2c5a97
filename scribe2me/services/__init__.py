"""Services for Scribe2Me."""

from .event_log import EventLog, LOG_TOPIC
from .readiness import ReadinessGate
from .pipeline import PipelineSequencer
from .orchestrator import TranscriptionOrchestrator, STATE_TOPIC

__all__ = [
    "EventLog",
    "LOG_TOPIC",
    "ReadinessGate",
    "PipelineSequencer",
    "TranscriptionOrchestrator",
    "STATE_TOPIC",
]
