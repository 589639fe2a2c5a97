"""Exception hierarchy for Scribe2Me.

All Scribe2Me-specific exceptions inherit from Scribe2MeError. Pipeline
errors carry the stage they were raised from so the orchestrator can turn
them into a single human-readable event log line.
"""

from typing import Optional


class Scribe2MeError(Exception):
    """Base exception for all Scribe2Me errors."""
    pass


class LoadError(Scribe2MeError):
    """Model discovery or engine initialization failed."""
    pass


class NoModelFound(LoadError):
    """No model could be located for the configured engine."""

    def __init__(self, location: str = ""):
        self.location = location
        message = "No models found"
        if location:
            message += f" in {location}"
        super().__init__(message)


class EngineInitFailed(LoadError):
    """The inference engine raised while loading a model."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Failed to initialize inference engine: {cause}")


class PipelineError(Scribe2MeError):
    """A stage of a pipeline run failed; only the current run is aborted."""

    stage: str = "pipeline"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class DecodeError(PipelineError):
    """Audio bytes could not be read or parsed into canonical PCM."""
    stage = "decode"


class TranscodeError(PipelineError):
    """The external transcoder reported a non-success exit status."""

    stage = "transcode"

    def __init__(self, exit_status: Optional[int], message: str = ""):
        self.exit_status = exit_status
        super().__init__(message or f"Conversion failed (exit status {exit_status})")


class InferenceError(PipelineError):
    """The inference engine failed while transcribing samples."""

    stage = "infer"

    def __init__(self, cause: BaseException):
        super().__init__(f"Inference failed: {cause}", cause)


class PersistError(PipelineError):
    """Writing the formatted document to durable storage failed."""

    stage = "persist"

    def __init__(self, cause: BaseException):
        super().__init__(f"Save failed: {cause}", cause)


class NoContent(Scribe2MeError):
    """The engine produced no text after trimming."""

    def __init__(self):
        super().__init__("No speech detected")


class RejectedError(Scribe2MeError):
    """A request was rejected without changing any state."""
    pass


class BusyError(RejectedError):
    """The exclusive hold is already taken by another run."""

    def __init__(self):
        super().__init__("Engine is busy")


class NotReadyError(RejectedError):
    """No model is loaded, so no work can be accepted."""

    def __init__(self):
        super().__init__("Engine is not ready")


class CaptureError(Scribe2MeError):
    """The capture device failed to start or failed mid-recording."""
    pass
