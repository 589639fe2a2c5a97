"""Microphone capture into a WAV file."""

import pyaudio
import wave
import logging
import threading
from threading import Thread, Event
from pathlib import Path
from typing import Optional, Callable
from datetime import datetime

from ..exceptions import CaptureError

logger = logging.getLogger(__name__)


class AudioCapture:
    """Captures 16 kHz mono 16-bit audio from the default input device to a file.

    The device handle is an exclusive, scoped resource: it is acquired by
    ``start_capture`` and released unconditionally by ``stop_capture``, by a
    capture error, or by the next ``start_capture`` before it reacquires.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """
        Args:
            sample_rate: Capture rate; 16 kHz is the canonical pipeline rate
            chunk_size: Frames read from the device per iteration
            channels: Channel count written to the WAV header
            format: PyAudio sample format (paInt16 for pcm_s16le)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        # Capture thread
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self.destination: Optional[Path] = None
        self._on_error: Optional[Callable[[Exception], None]] = None

        # Stats
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0

        # Device handles
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self.wave_file: Optional[wave.Wave_write] = None
        self.active_handles = 0
        self._release_lock = threading.Lock()

    def start_capture(self, destination: Path, on_error: Callable[[Exception], None]) -> None:
        """Start recording into ``destination`` on a background thread.

        Any straggling handle from a previous capture is stopped and released
        before the device is opened again.

        Raises:
            CaptureError: If the device or the destination cannot be opened
        """
        self.stop_capture()

        logger.info(f"Starting audio capture to {destination}")
        self.stop_event.clear()
        self.destination = Path(destination)
        self._on_error = on_error
        self.start_time = datetime.now()
        self.total_chunks = 0

        try:
            self.__open_handles()
        except Exception as e:
            self._release()
            raise CaptureError(f"Cannot start capture: {e}") from e

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()

    def stop_capture(self) -> None:
        """Stop recording, finalize the WAV file and release the device."""
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")
        self.recording_thread = None

        was_recording = self.is_recording
        self.is_recording = False
        self._release()
        if was_recording:
            duration = (datetime.now() - self.start_time).total_seconds()
            logger.info(f"Capture stopped after {duration:.1f}s ({self.total_chunks} chunks)")

    def __open_handles(self) -> None:
        self.pyaudio_instance = pyaudio.PyAudio()
        self.active_handles += 1
        self.stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        self.wave_file = wave.open(str(self.destination), 'wb')
        self.wave_file.setnchannels(self.channels)
        self.wave_file.setsampwidth(self.pyaudio_instance.get_sample_size(self.format))
        self.wave_file.setframerate(self.sample_rate)
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")

    def _record_continuously(self) -> None:
        """Copy device frames into the WAV file until stopped or the device fails."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = self.stream.read(self.chunk_size, exception_on_overflow=False)
                self.wave_file.writeframes(audio_chunk)
                self.total_chunks += 1
        except Exception as e:
            logger.error(f"Capture failed: {e}")
            self.is_recording = False
            self._release()
            if self._on_error:
                self._on_error(e)

    def _release(self) -> None:
        """Close stream, WAV file and PyAudio instance; safe to call repeatedly."""
        with self._release_lock:
            if self.stream is not None:
                try:
                    self.stream.stop_stream()
                    self.stream.close()
                except Exception as e:
                    logger.warning(f"Error closing audio stream: {e}")
                self.stream = None
            if self.wave_file is not None:
                try:
                    self.wave_file.close()
                except Exception as e:
                    logger.warning(f"Error closing capture file: {e}")
                self.wave_file = None
            if self.pyaudio_instance is not None:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None
                self.active_handles -= 1

    def __del__(self):
        """Release the device if the owner forgot to stop the capture."""
        if self.is_recording:
            self.stop_capture()
