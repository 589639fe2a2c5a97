"""Pytest configuration and fixtures for Scribe2Me tests."""

import pytest
import time
import tempfile
import logging
from pathlib import Path
from unittest.mock import Mock, patch
import numpy as np
from scipy.io import wavfile

from scribe2me.config import Scribe2MeConfig
from scribe2me.services.event_log import EventLog
from scribe2me.services.orchestrator import TranscriptionOrchestrator
from scribe2me.storage.file_manager import FileManager

from .stubs import StubCaptureDevice, StubEngine, StubTranscoder


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with every device and engine stubbed")
    config.addinivalue_line("markers", "integration: orchestrator runs across several components")
    config.addinivalue_line("markers", "hardware: needs a real microphone or external tools")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def speech_samples():
    """Half a second of a 440 Hz tone as 16-bit PCM."""
    t = np.linspace(0, 0.5, 8000, False)
    return (np.sin(2 * np.pi * 440 * t) * 16000).astype(np.int16)


@pytest.fixture
def sample_wav_file(temp_data_dir, speech_samples):
    """A canonical 16 kHz mono WAV file."""
    file_path = Path(temp_data_dir) / "jfk.wav"
    wavfile.write(str(file_path), 16000, speech_samples)
    return file_path


@pytest.fixture
def bundled_samples_dir(temp_data_dir, speech_samples):
    """Directory standing in for the samples shipped with the app."""
    source = Path(temp_data_dir) / "bundled"
    source.mkdir()
    wavfile.write(str(source / "b_second.wav"), 16000, speech_samples)
    wavfile.write(str(source / "a_first.wav"), 16000, speech_samples)
    return source


@pytest.fixture
def test_config(temp_data_dir):
    """In-memory configuration rooted in the temporary directory."""
    return Scribe2MeConfig.from_dict({
        "storage": {"data_directory": str(Path(temp_data_dir) / "data")},
        "logging": {"file_path": str(Path(temp_data_dir) / "data" / "logs" / "test.log")},
    })


@pytest.fixture
def file_manager(test_config):
    return FileManager(test_config.get_data_directory(), test_config.get_output_directory())


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        def paced_read(num_frames, exception_on_overflow=True):
            # Roughly the pace of a real 16 kHz device
            time.sleep(0.01)
            return b'\x00' * (num_frames * 2)  # Silent audio

        mock_stream.read.side_effect = paced_read
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def make_orchestrator(test_config, speech_samples):
    """Factory building an orchestrator with stubbed engine, transcoder and devices."""
    created = []

    def _make(engine=None, transcoder=None, capture=None, model_locator=None, **settings):
        for key_path, value in settings.items():
            test_config.set(key_path.replace("__", "."), value)
        engine = engine or StubEngine()
        orchestrator = TranscriptionOrchestrator(
            test_config,
            engine_factory=lambda: engine,
            model_locator=model_locator or (lambda: "ggml-tiny.bin"),
            transcoder=transcoder or StubTranscoder(speech_samples),
            capture=capture or StubCaptureDevice(speech_samples),
            playback=Mock(),
            event_log=EventLog(),
        )
        orchestrator.engine_stub = engine
        created.append(orchestrator)
        return orchestrator

    yield _make

    for orchestrator in created:
        orchestrator.shutdown()
