"""Integration tests for TranscriptionOrchestrator: guard, triggers and capture."""

import threading
import pytest
from pathlib import Path
from unittest.mock import patch

from pubsub import pub

from scribe2me.exceptions import CaptureError, NoModelFound
from scribe2me.models.events import (
    Accepted,
    Benchmark,
    Rejected,
    RejectReason,
    TranscribeFile,
    TranscribeSample,
)
from scribe2me.models.session import GateState
from scribe2me.services.orchestrator import STATE_TOPIC

from ..stubs import StubCaptureDevice, StubEngine, StubTranscoder


def no_model():
    raise NoModelFound("models")


@pytest.mark.integration
class TestInitialization:
    """Model loading and readiness."""

    def test_initialize_success(self, make_orchestrator, bundled_samples_dir):
        orchestrator = make_orchestrator(storage__bundled_samples_directory=str(bundled_samples_dir))

        assert orchestrator.initialize() is True

        lines = orchestrator.event_log.lines
        assert lines[0] == "Loading data..."
        assert "Loaded model ggml-tiny.bin." in lines
        assert any(line.startswith("System Info: stub") for line in lines)
        assert orchestrator.is_ready() is True
        assert len(orchestrator.file_manager.list_samples()) == 2

    def test_no_model_leaves_session_not_ready(self, make_orchestrator):
        orchestrator = make_orchestrator(model_locator=no_model)

        assert orchestrator.initialize() is False

        assert orchestrator.is_ready() is False
        assert orchestrator.gate.state is GateState.IDLE
        assert "No models found in models." in orchestrator.event_log.lines

    def test_engine_failure_then_retry(self, make_orchestrator):
        engine = StubEngine(load_error=RuntimeError("bad magic"))
        orchestrator = make_orchestrator(engine=engine)

        assert orchestrator.initialize() is False
        assert any("bad magic" in line for line in orchestrator.event_log.lines)

        engine.load_error = None
        assert orchestrator.initialize() is True
        assert orchestrator.is_ready() is True


@pytest.mark.integration
class TestSingleFlightGuard:
    """Triggers are accepted only while ready; never queued."""

    def test_submit_when_not_ready_is_rejected_silently(self, make_orchestrator, sample_wav_file):
        orchestrator = make_orchestrator(model_locator=no_model)
        orchestrator.initialize()
        log_length = len(orchestrator.event_log)

        for trigger in (Benchmark(), TranscribeSample(), TranscribeFile(sample_wav_file)):
            outcome = orchestrator.submit(trigger)
            assert isinstance(outcome, Rejected)
            assert outcome.reason is RejectReason.NOT_READY

        assert len(orchestrator.event_log) == log_length
        assert orchestrator.gate.state is GateState.IDLE
        assert orchestrator.engine_stub.transcribe_calls == 0

    def test_concurrent_submit_observes_busy(self, make_orchestrator, bundled_samples_dir):
        block = threading.Event()
        engine = StubEngine(block=block)
        orchestrator = make_orchestrator(engine=engine,
                                         storage__bundled_samples_directory=str(bundled_samples_dir))
        orchestrator.initialize()
        assert orchestrator.is_ready() is True

        first = orchestrator.submit(TranscribeSample())
        assert isinstance(first, Accepted)
        assert engine.started.wait(timeout=5)

        assert orchestrator.is_ready() is False
        log_length = len(orchestrator.event_log)
        second = orchestrator.submit(Benchmark())
        assert isinstance(second, Rejected)
        assert second.reason is RejectReason.BUSY
        assert len(orchestrator.event_log) == log_length

        block.set()
        report = first.wait(timeout=5)

        assert report.saved_path is not None
        assert orchestrator.is_ready() is True
        assert engine.transcribe_calls == 1

    def test_ready_restored_after_transcode_failure(self, make_orchestrator, speech_samples, temp_data_dir):
        orchestrator = make_orchestrator(transcoder=StubTranscoder(speech_samples, exit_status=1))
        orchestrator.initialize()
        upload = Path(temp_data_dir) / "talk.mp4"
        upload.write_bytes(b"\x00\x00\x00\x18ftypmp42")

        report = orchestrator.submit(TranscribeFile(upload)).wait(timeout=5)

        assert report is None
        assert "Conversion failed (exit status 1)." in orchestrator.event_log.lines
        assert orchestrator.engine_stub.transcribe_calls == 0
        assert list(orchestrator.file_manager.output_dir.iterdir()) == []
        assert orchestrator.is_ready() is True

    def test_ready_restored_after_inference_failure(self, make_orchestrator, sample_wav_file):
        orchestrator = make_orchestrator(engine=StubEngine(error=RuntimeError("out of memory")))
        orchestrator.initialize()

        report = orchestrator.submit(TranscribeFile(sample_wav_file)).wait(timeout=5)

        assert report is None
        assert "Inference failed: out of memory." in orchestrator.event_log.lines
        assert orchestrator.is_ready() is True

    def test_unexpected_error_is_logged_and_released(self, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.initialize()

        with patch.object(orchestrator.file_manager, "list_samples", side_effect=RuntimeError("disk gone")):
            assert orchestrator.submit(TranscribeSample()).wait(timeout=5) is None

        assert "Error: disk gone" in orchestrator.event_log.lines
        assert orchestrator.is_ready() is True

    def test_state_published_on_every_transition(self, make_orchestrator, sample_wav_file):
        received = []

        def on_state(ready, busy, recording):
            received.append((ready, busy, recording))

        pub.subscribe(on_state, STATE_TOPIC)
        try:
            orchestrator = make_orchestrator()
            orchestrator.initialize()
            orchestrator.submit(TranscribeFile(sample_wav_file)).wait(timeout=5)
        finally:
            pub.unsubscribe(on_state, STATE_TOPIC)

        assert received == [
            (True, False, False),
            (False, True, False),
            (True, False, False),
        ]


@pytest.mark.integration
class TestTriggers:
    """Benchmark, sample and file triggers."""

    def test_benchmark(self, make_orchestrator):
        orchestrator = make_orchestrator(benchmark__threads=6)
        orchestrator.initialize()

        assert orchestrator.submit(Benchmark()).wait(timeout=5) is None

        lines = orchestrator.event_log.lines
        start = lines.index("Running benchmark...")
        assert lines[start + 1] == "memcpy: 1.00 GB/s (6 threads)"
        assert lines[start + 2] == "matmul: 1.00 GFLOPS (6 threads)"
        assert orchestrator.is_ready() is True

    def test_sample_without_samples(self, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.initialize()

        assert orchestrator.submit(TranscribeSample()).wait(timeout=5) is None

        assert orchestrator.event_log.lines[-1] == "No sample file found."
        assert orchestrator.engine_stub.transcribe_calls == 0
        assert orchestrator.is_ready() is True

    def test_sample_uses_first_by_name(self, make_orchestrator, bundled_samples_dir):
        orchestrator = make_orchestrator(storage__bundled_samples_directory=str(bundled_samples_dir),
                                         playback__play_samples=True)
        orchestrator.initialize()

        report = orchestrator.submit(TranscribeSample()).wait(timeout=5)

        assert "Reading bundled-sample: a_first.wav" in orchestrator.event_log.lines
        assert report.saved_path.suffix == ".srt"
        played = orchestrator.playback.play.call_args[0][0]
        assert played.name == "a_first.wav"
        # Bundled samples are never deleted
        assert played.exists()

    def test_file_in_text_mode(self, make_orchestrator, temp_data_dir):
        orchestrator = make_orchestrator(output__mode="text")
        orchestrator.initialize()
        upload = Path(temp_data_dir) / "memo.aac"
        upload.write_bytes(b"\xff\xf1fake aac")

        report = orchestrator.submit(TranscribeFile(upload)).wait(timeout=5)

        assert report.saved_path.suffix == ".txt"
        assert report.saved_path.read_text(encoding="utf-8") == "hello world"

    def test_snapshot(self, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.initialize()

        snapshot = orchestrator.snapshot()

        assert snapshot.ready is True
        assert snapshot.recording is False
        assert snapshot.event_log.startswith("Loading data...\n")


@pytest.mark.integration
class TestRecording:
    """Capture lifecycle owned by the orchestrator."""

    def test_record_then_transcribe(self, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.initialize()

        assert orchestrator.start_capture() is True
        assert orchestrator.recording is True
        capture_path = orchestrator.capture.destination

        outcome = orchestrator.stop_capture()
        report = outcome.wait(timeout=5)

        assert orchestrator.recording is False
        assert report.saved_path.exists()
        assert not capture_path.exists()
        assert orchestrator.capture.active_handles == 0
        assert orchestrator.is_ready() is True

    def test_toggle_record(self, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.initialize()

        orchestrator.toggle_record()
        assert orchestrator.recording is True
        orchestrator.toggle_record()
        assert orchestrator.recording is False

    def test_repeated_start_stop_holds_at_most_one_device(self, make_orchestrator, speech_samples):
        device = StubCaptureDevice(speech_samples)
        orchestrator = make_orchestrator(capture=device)
        orchestrator.initialize()

        for _ in range(5):
            orchestrator.start_capture()
            orchestrator.start_capture()
            outcome = orchestrator.stop_capture()
            outcome.wait(timeout=5)

        assert device.max_active_handles <= 1
        assert device.active_handles == 0

    def test_cannot_record_when_not_ready(self, make_orchestrator):
        orchestrator = make_orchestrator(model_locator=no_model)
        orchestrator.initialize()

        assert orchestrator.start_capture() is False
        assert orchestrator.recording is False
        assert orchestrator.stop_capture() is None

    def test_capture_error_resets_recording(self, make_orchestrator, speech_samples):
        device = StubCaptureDevice(speech_samples)
        orchestrator = make_orchestrator(capture=device)
        orchestrator.initialize()
        orchestrator.start_capture()

        device.fail(OSError("device unplugged"))

        assert orchestrator.recording is False
        assert device.active_handles == 0
        assert "Recording failed: device unplugged" in orchestrator.event_log.lines
        assert orchestrator.is_ready() is True

    def test_capture_start_failure(self, make_orchestrator, speech_samples):
        device = StubCaptureDevice(speech_samples, start_error=CaptureError("Cannot start capture: busy"))
        orchestrator = make_orchestrator(capture=device)
        orchestrator.initialize()

        assert orchestrator.start_capture() is False

        assert orchestrator.recording is False
        assert "Recording failed: Cannot start capture: busy" in orchestrator.event_log.lines
        assert list(orchestrator.file_manager.tmp_dir.iterdir()) == []

    def test_playback_stopped_before_capture(self, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.initialize()

        orchestrator.start_capture()

        orchestrator.playback.stop.assert_called()
        orchestrator.stop_capture().wait(timeout=5)

    def test_upload_rejected_while_recording(self, make_orchestrator, sample_wav_file):
        orchestrator = make_orchestrator()
        orchestrator.initialize()
        orchestrator.start_capture()
        lines_before = list(orchestrator.event_log.lines)

        outcome = orchestrator.submit(TranscribeFile(sample_wav_file))

        assert isinstance(outcome, Rejected)
        assert outcome.reason is RejectReason.RECORDING
        assert orchestrator.event_log.lines == lines_before
        assert orchestrator.is_ready() is True

        report = orchestrator.stop_capture().wait(timeout=5)
        assert report.saved_path.exists()

    def test_sample_accepted_while_recording(self, make_orchestrator, bundled_samples_dir):
        orchestrator = make_orchestrator(storage__bundled_samples_directory=str(bundled_samples_dir))
        orchestrator.initialize()
        orchestrator.start_capture()

        outcome = orchestrator.submit(TranscribeSample())

        assert isinstance(outcome, Accepted)
        outcome.wait(timeout=5)
        orchestrator.stop_capture().wait(timeout=5)
