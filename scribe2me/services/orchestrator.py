"""Transcription orchestrator: the single owner of session state."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from pubsub import pub

from ..audio.capture import AudioCapture
from ..audio.playback import AudioPlayback
from ..audio.transcoder import AudioTranscoder
from ..config import Scribe2MeConfig
from ..exceptions import (
    BusyError,
    CaptureError,
    LoadError,
    NotReadyError,
    PipelineError,
)
from ..models.audio import AudioInput, AudioOrigin
from ..models.events import (
    Accepted,
    Benchmark,
    Outcome,
    Rejected,
    RejectReason,
    TranscribeCapture,
    TranscribeFile,
    TranscribeSample,
    Trigger,
)
from ..models.session import GateState, SessionSnapshot
from ..models.transcription import OutputMode, PipelineReport
from ..storage.file_manager import FileManager
from ..transcription.base import AbstractInferenceEngine
from ..transcription.factory import create_engine, locate_model
from .event_log import EventLog
from .pipeline import PipelineSequencer
from .readiness import ReadinessGate

logger = logging.getLogger(__name__)

STATE_TOPIC = "session.state"


class TranscriptionOrchestrator:
    """Owns the readiness gate, the event log, the recording flag and the worker.

    Triggers are accepted only while the gate is READY. An accepted trigger
    holds the gate until its run finishes on the single background worker;
    anything submitted meanwhile is rejected immediately, never queued.
    """

    def __init__(self,
                 config: Scribe2MeConfig,
                 engine_factory: Optional[Callable[[], AbstractInferenceEngine]] = None,
                 model_locator: Optional[Callable[[], str]] = None,
                 transcoder: Optional[AudioTranscoder] = None,
                 capture: Optional[AudioCapture] = None,
                 playback: Optional[AudioPlayback] = None,
                 file_manager: Optional[FileManager] = None,
                 event_log: Optional[EventLog] = None):
        """Initialize the orchestrator.

        Args:
            config: Application configuration
            engine_factory: Builds an unloaded engine (defaults to ``create_engine``)
            model_locator: Returns the model to load (defaults to ``locate_model``)
            transcoder, capture, playback, file_manager, event_log: Collaborators,
                built from ``config`` when omitted
        """
        self.config = config
        self.event_log = event_log or EventLog()
        self.file_manager = file_manager or FileManager(
            config.get_data_directory(), config.get_output_directory()
        )
        self.capture = capture or AudioCapture(
            sample_rate=config.get("audio.sample_rate", 16000),
            chunk_size=config.get("audio.chunk_size", 1024),
            channels=config.get("audio.channels", 1),
        )
        self.playback = playback or AudioPlayback(chunk_size=config.get("audio.chunk_size", 1024))

        self.gate = ReadinessGate(
            engine_factory or (lambda: create_engine(config)),
            model_locator or (lambda: locate_model(config)),
            on_change=self._on_gate_change,
        )
        self.sequencer = PipelineSequencer(
            gate=self.gate,
            file_manager=self.file_manager,
            transcoder=transcoder or AudioTranscoder(config.get("transcoder.ffmpeg_path", "ffmpeg")),
            event_log=self.event_log,
            output_prefix=config.get("output.prefix", "whisper"),
            sample_rate=config.get("audio.sample_rate", 16000),
        )
        self.mode = OutputMode(config.get("output.mode", OutputMode.SUBTITLES.value))

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scribe2me-pipeline")
        self._state_lock = threading.Lock()
        self.recording = False
        self._capture_path: Optional[Path] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> bool:
        """Install bundled samples and load the model.

        Returns:
            True when the session became ready. On failure the error is in
            the event log and ``initialize`` may be called again.
        """
        self.event_log.append("Loading data...")
        self.file_manager.install_samples(self.config.get("storage.bundled_samples_directory"))

        try:
            model_ref = self.gate.initialize()
        except LoadError as e:
            logger.error(f"Model loading failed: {e}")
            self.event_log.append(f"{e}.")
            return False
        except BusyError as e:
            self.event_log.append(f"Cannot reload model: {e}.")
            return False

        self.event_log.append(f"Loaded model {Path(model_ref).name}.")
        self.event_log.append(f"System Info: {self.gate.engine.system_info()}")
        return True

    def shutdown(self) -> None:
        """Stop capture and playback, drain the worker and release the engine."""
        logger.info("Shutting down orchestrator")
        with self._state_lock:
            was_recording, self.recording = self.recording, False
            self._capture_path = None
        self.capture.stop_capture()
        self.playback.stop()
        self._executor.shutdown(wait=True)
        self.gate.shutdown()
        if was_recording:
            self._publish_state()

    # ------------------------------------------------------------------
    # Observed state
    # ------------------------------------------------------------------

    def is_ready(self) -> bool:
        return self.gate.is_ready()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            ready=self.gate.is_ready(),
            recording=self.recording,
            event_log=self.event_log.text,
        )

    def _on_gate_change(self, state: GateState) -> None:
        logger.debug(f"Gate state changed to {state.value}")
        self._publish_state()

    def _publish_state(self) -> None:
        state = self.gate.state
        pub.sendMessage(STATE_TOPIC,
                        ready=state is GateState.READY,
                        busy=state is GateState.BUSY,
                        recording=self.recording)

    # ------------------------------------------------------------------
    # Single-flight guard
    # ------------------------------------------------------------------

    def submit(self, trigger: Trigger, mode: Optional[OutputMode] = None) -> Outcome:
        """Accept ``trigger`` and run it in the background, or reject it.

        A rejection leaves the event log and all state untouched.
        """
        # No uploads while a capture is in progress
        with self._state_lock:
            if isinstance(trigger, TranscribeFile) and self.recording:
                logger.debug(f"Rejected {trigger.kind}: recording in progress")
                return Rejected(trigger, RejectReason.RECORDING)
            try:
                prior = self.gate.acquire()
            except BusyError:
                logger.debug(f"Rejected {trigger.kind}: busy")
                return Rejected(trigger, RejectReason.BUSY)
            except NotReadyError:
                logger.debug(f"Rejected {trigger.kind}: not ready")
                return Rejected(trigger, RejectReason.NOT_READY)

        try:
            future = self._executor.submit(self._run, trigger, prior, mode or self.mode)
        except RuntimeError:
            self.gate.release(prior)
            raise
        logger.info(f"Accepted {trigger.kind} trigger")
        return Accepted(trigger, future)

    def _run(self, trigger: Trigger, prior: GateState, mode: OutputMode) -> Optional[PipelineReport]:
        try:
            return self._dispatch(trigger, mode)
        except PipelineError as e:
            self.event_log.append(f"{e}.")
            return None
        except Exception as e:
            logger.error(f"Unexpected error while running {trigger.kind}: {e}", exc_info=True)
            self.event_log.append(f"Error: {e}")
            return None
        finally:
            self.gate.release(prior)

    def _dispatch(self, trigger: Trigger, mode: OutputMode) -> Optional[PipelineReport]:
        if isinstance(trigger, Benchmark):
            self._run_benchmark()
            return None
        if isinstance(trigger, TranscribeSample):
            return self._run_sample(mode)
        if isinstance(trigger, TranscribeFile):
            audio_input = AudioInput(Path(trigger.path), AudioOrigin.UPLOADED_FILE)
            return self.sequencer.run(audio_input, mode)
        if isinstance(trigger, TranscribeCapture):
            audio_input = AudioInput(Path(trigger.path), AudioOrigin.LIVE_CAPTURE)
            return self.sequencer.run(audio_input, mode)
        raise ValueError(f"Unknown trigger: {trigger!r}")

    def _run_benchmark(self) -> None:
        n_threads = self.config.get("benchmark.threads", 6)
        engine = self.gate.engine
        self.event_log.append("Running benchmark...")
        self.event_log.append(engine.bench_memory(n_threads))
        self.event_log.append(engine.bench_matmul(n_threads))

    def _run_sample(self, mode: OutputMode) -> Optional[PipelineReport]:
        samples = self.file_manager.list_samples()
        if not samples:
            self.event_log.append("No sample file found.")
            return None

        sample = samples[0]
        if self.config.get("playback.play_samples", False):
            try:
                self.playback.play(sample)
            except Exception as e:
                logger.warning(f"Could not play sample {sample}: {e}")
        return self.sequencer.run(AudioInput(sample, AudioOrigin.BUNDLED_SAMPLE), mode)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_capture(self) -> bool:
        """Start recording into a fresh temporary file.

        Returns:
            False if already recording, not ready, or the device failed
        """
        with self._state_lock:
            if self.recording:
                return False
            if not self.gate.is_ready():
                logger.info("Capture not started: engine is not ready")
                return False
            path = self.file_manager.create_temp_file("capture", ".wav")
            self._capture_path = path
            self.recording = True

        self.playback.stop()
        try:
            self.capture.start_capture(path, self._on_capture_error)
        except CaptureError as e:
            logger.error(f"Failed to start capture: {e}")
            with self._state_lock:
                self.recording = False
                self._capture_path = None
            self.file_manager.discard(path)
            self.event_log.append(f"Recording failed: {e}")
            self._publish_state()
            return False

        self._publish_state()
        return True

    def stop_capture(self) -> Optional[Outcome]:
        """End the capture and submit it for transcription.

        Returns:
            The submit outcome, or None if nothing was being recorded
        """
        with self._state_lock:
            if not self.recording:
                return None
            self.recording = False
            path, self._capture_path = self._capture_path, None

        self.capture.stop_capture()
        self._publish_state()

        outcome = self.submit(TranscribeCapture(path))
        if not outcome.accepted:
            self.event_log.append(f"Recording not transcribed ({outcome.reason.value}); kept {path}.")
        return outcome

    def toggle_record(self) -> None:
        """The record button: stop and transcribe when recording, start otherwise."""
        if self.recording:
            self.stop_capture()
        else:
            self.start_capture()

    def _on_capture_error(self, error: Exception) -> None:
        """Called from the capture thread after the device has been released."""
        with self._state_lock:
            if not self.recording:
                return
            self.recording = False
            path, self._capture_path = self._capture_path, None

        logger.error(f"Capture error: {error}")
        self.event_log.append(f"Recording failed: {error}")
        if path is not None:
            self.event_log.append(f"Kept {path} for inspection.")
        self._publish_state()
