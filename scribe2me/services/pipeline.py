"""Pipeline sequencer: decode, transcode, infer, format, persist."""

import time
import logging
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from ..audio.decoder import check_upload, copy_upload, decode_wave_file
from ..audio.transcoder import AudioTranscoder
from ..exceptions import DecodeError, InferenceError, NoContent, PersistError, PipelineError
from ..models.audio import AudioInput, AudioOrigin
from ..models.transcription import (
    Document,
    OutputMode,
    PipelineReport,
    PipelineStage,
    TranscriptionResult,
)
from ..storage.file_manager import FileManager
from ..transcription.formatter import SegmentFormatter
from .event_log import EventLog
from .readiness import ReadinessGate

logger = logging.getLogger(__name__)


class PipelineSequencer:
    """Runs the ordered stage chain for one audio input.

    Each stage appends a progress line to the event log before it starts and
    the first failing stage aborts the rest. Temporary files owned by the run
    are deleted on success and kept for inspection on failure. A failed save
    does not undo the run: the formatted text is already in the event log.
    """

    def __init__(self,
                 gate: ReadinessGate,
                 file_manager: FileManager,
                 transcoder: AudioTranscoder,
                 event_log: EventLog,
                 formatter: Optional[SegmentFormatter] = None,
                 output_prefix: str = "whisper",
                 sample_rate: int = 16000,
                 clock: Callable[[], float] = time.monotonic):
        self.gate = gate
        self.file_manager = file_manager
        self.transcoder = transcoder
        self.event_log = event_log
        self.formatter = formatter or SegmentFormatter()
        self.output_prefix = output_prefix
        self.sample_rate = sample_rate
        self._clock = clock

    def _enter(self, stage: PipelineStage, message: str) -> None:
        logger.debug(f"Entering stage {stage.value}")
        self.event_log.append(message)

    def run(self, audio_input: AudioInput, mode: OutputMode = OutputMode.SUBTITLES) -> PipelineReport:
        """Run all stages for ``audio_input``.

        Raises:
            DecodeError, TranscodeError, InferenceError: the run is aborted
        """
        owned_files: List[Path] = []
        if audio_input.origin is AudioOrigin.LIVE_CAPTURE:
            owned_files.append(audio_input.path)
        completed: List[PipelineStage] = []

        try:
            samples = self._decode_stage(audio_input, owned_files)
            completed.append(PipelineStage.DECODE)

            if not audio_input.origin.is_canonical:
                samples = self._transcode_stage(owned_files)
                completed.append(PipelineStage.TRANSCODE)

            result, elapsed_ms = self._infer_stage(samples)
            completed.append(PipelineStage.INFER)
        except PipelineError as e:
            logger.error(f"Pipeline aborted in {e.stage} stage: {e}")
            self._keep_for_inspection(owned_files)
            raise

        report = PipelineReport(result=result, document=None, elapsed_ms=elapsed_ms,
                                stages_completed=completed)

        document = self._format_stage(result, mode)
        completed.append(PipelineStage.FORMAT)
        if document is not None:
            report.document = document
            self._persist_stage(document, report)
            completed.append(PipelineStage.PERSIST)

        self.event_log.append(f"Done ({elapsed_ms} ms).")
        for path in owned_files:
            self.file_manager.discard(path)
        return report

    def _decode_stage(self, audio_input: AudioInput, owned_files: List[Path]) -> Optional[np.ndarray]:
        self._enter(PipelineStage.DECODE, f"Reading {audio_input.origin.value}: {audio_input.path.name}")

        if audio_input.origin.is_canonical:
            return decode_wave_file(audio_input.path, self.sample_rate)

        check_upload(audio_input.path)
        suffix = audio_input.path.suffix or ".tmp"
        upload_copy = self.file_manager.create_temp_file("input", suffix)
        try:
            copy_upload(audio_input.path, upload_copy)
        except DecodeError:
            self.file_manager.discard(upload_copy)
            raise
        owned_files.append(upload_copy)
        return None

    def _transcode_stage(self, owned_files: List[Path]) -> np.ndarray:
        self._enter(PipelineStage.TRANSCODE, "Converting to 16 kHz mono PCM...")

        upload_copy = owned_files[-1]
        converted = self.file_manager.create_temp_file("converted", ".wav")
        owned_files.append(converted)
        self.transcoder.convert(upload_copy, converted, target_rate=self.sample_rate, target_channels=1)
        samples = decode_wave_file(converted, self.sample_rate)
        self.event_log.append("Converted.")
        return samples

    def _infer_stage(self, samples: np.ndarray):
        self._enter(PipelineStage.INFER, "Transcribing...")

        engine = self.gate.engine
        if engine is None:
            raise InferenceError(RuntimeError("No model loaded"))

        start = self._clock()
        try:
            result: TranscriptionResult = engine.transcribe(samples)
        except Exception as e:
            logger.error(f"Inference failed: {e}", exc_info=True)
            raise InferenceError(e) from e
        elapsed_ms = int((self._clock() - start) * 1000)

        logger.info(f"Inference finished in {elapsed_ms} ms with {len(result.segments)} segments")
        return result, elapsed_ms

    def _format_stage(self, result: TranscriptionResult, mode: OutputMode) -> Optional[Document]:
        self._enter(PipelineStage.FORMAT, "Formatting result...")
        try:
            document = self.formatter.format(result, mode)
        except NoContent:
            self.event_log.append("No speech detected.")
            return None

        self.event_log.append(document.content.rstrip("\n"))
        return document

    def _persist_stage(self, document: Document, report: PipelineReport) -> None:
        self._enter(PipelineStage.PERSIST, "Saving...")
        name = self.file_manager.document_name(self.output_prefix, document.kind.extension)
        try:
            report.saved_path = self.file_manager.write_document(name, document.content)
        except PersistError as e:
            report.persist_error = str(e)
            self.event_log.append(
                f"Save failed: {e.cause}. Check write permissions for {self.file_manager.output_dir}"
            )
            return
        self.event_log.append(f"Saved {document.kind.extension.upper()}: {report.saved_path}")

    def _keep_for_inspection(self, owned_files: List[Path]) -> None:
        for path in owned_files:
            if path.exists():
                self.event_log.append(f"Kept {path} for inspection.")
