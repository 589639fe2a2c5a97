"""Playback of WAV files through the default output device."""

import pyaudio
import wave
import logging
import threading
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class AudioPlayback:
    """Plays one WAV file at a time on a background thread.

    Like capture, the output handle is exclusive: ``play`` stops and
    releases any previous playback before opening the device again.
    """

    def __init__(self, chunk_size: int = 1024):
        self.chunk_size = chunk_size
        self.stop_event = threading.Event()
        self.playback_thread: Optional[threading.Thread] = None
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self.wave_file: Optional[wave.Wave_read] = None
        self.active_handles = 0
        self._release_lock = threading.Lock()

    @property
    def is_playing(self) -> bool:
        return self.playback_thread is not None and self.playback_thread.is_alive()

    def play(self, path: Path) -> None:
        """Start playing ``path``; returns immediately."""
        self.stop()

        logger.info(f"Playing {path}")
        self.stop_event.clear()
        try:
            self.wave_file = wave.open(str(path), 'rb')
            self.pyaudio_instance = pyaudio.PyAudio()
            self.active_handles += 1
            self.stream = self.pyaudio_instance.open(
                format=self.pyaudio_instance.get_format_from_width(self.wave_file.getsampwidth()),
                channels=self.wave_file.getnchannels(),
                rate=self.wave_file.getframerate(),
                output=True,
            )
        except Exception:
            self._release()
            raise

        self.playback_thread = threading.Thread(target=self._play_loop, daemon=True)
        self.playback_thread.name = "AudioPlaybackThread"
        self.playback_thread.start()

    def _play_loop(self) -> None:
        try:
            data = self.wave_file.readframes(self.chunk_size)
            while data and not self.stop_event.is_set():
                self.stream.write(data)
                data = self.wave_file.readframes(self.chunk_size)
        except Exception as e:
            logger.error(f"Playback failed: {e}")
        finally:
            self._release()

    def stop(self) -> None:
        """Stop playback and release the output device."""
        self.stop_event.set()
        if self.playback_thread and self.playback_thread.is_alive():
            self.playback_thread.join(timeout=2.0)
            if self.playback_thread.is_alive():
                logger.warning("Playback thread did not stop cleanly")
        self.playback_thread = None
        self._release()

    def _release(self) -> None:
        with self._release_lock:
            if self.stream is not None:
                try:
                    self.stream.stop_stream()
                    self.stream.close()
                except Exception as e:
                    logger.warning(f"Error closing playback stream: {e}")
                self.stream = None
            if self.wave_file is not None:
                self.wave_file.close()
                self.wave_file = None
            if self.pyaudio_instance is not None:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None
                self.active_handles -= 1
