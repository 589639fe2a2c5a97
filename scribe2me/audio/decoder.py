"""Decoding of canonical WAV audio into PCM samples."""

import shutil
import logging
from pathlib import Path

import numpy as np
from scipy.io import wavfile

from ..exceptions import DecodeError

logger = logging.getLogger(__name__)

CANONICAL_SAMPLE_RATE = 16000


def pcm_to_float32(data: np.ndarray) -> np.ndarray:
    """Scale integer PCM into float32 samples in [-1, 1]."""
    if data.dtype == np.int16:
        return data.astype(np.float32) / 32768.0
    if data.dtype == np.int32:
        return data.astype(np.float32) / 2147483648.0
    if data.dtype == np.uint8:
        return (data.astype(np.float32) - 128.0) / 128.0
    if data.dtype in (np.float32, np.float64):
        return data.astype(np.float32)
    raise DecodeError(f"Unsupported sample format: {data.dtype}")


def decode_wave_file(path: Path, sample_rate: int = CANONICAL_SAMPLE_RATE) -> np.ndarray:
    """Read a WAV file into mono float32 samples.

    Stereo input is averaged down to mono. Any other sample rate than
    ``sample_rate`` is rejected, since resampling is the transcoder's job.

    Raises:
        DecodeError: On missing, empty, malformed or non-canonical data
    """
    path = Path(path)
    if not path.is_file():
        raise DecodeError(f"Audio file not found: {path}")

    try:
        rate, data = wavfile.read(str(path))
    except (ValueError, OSError, EOFError) as e:
        raise DecodeError(f"Malformed or unsupported audio data in {path.name}: {e}", e) from e

    if rate != sample_rate:
        raise DecodeError(f"Unsupported sample rate {rate} Hz in {path.name} (expected {sample_rate} Hz)")

    samples = pcm_to_float32(data)
    if samples.ndim == 2:
        samples = samples.mean(axis=1).astype(np.float32)

    if samples.size == 0:
        raise DecodeError(f"No audio samples in {path.name}")

    logger.debug(f"Decoded {path.name}: {samples.size} samples ({samples.size / sample_rate:.2f}s)")
    return samples


def check_upload(source: Path) -> int:
    """Return the size of an uploaded file.

    Raises:
        DecodeError: If the source is missing, not a regular file or empty
    """
    source = Path(source)
    try:
        size = source.stat().st_size
    except OSError as e:
        raise DecodeError(f"Cannot read uploaded file {source}: {e}", e) from e
    if not source.is_file():
        raise DecodeError(f"Uploaded path is not a file: {source}")
    if size == 0:
        raise DecodeError(f"Uploaded file is empty: {source}")
    return size


def copy_upload(source: Path, destination: Path) -> Path:
    """Copy an uploaded byte source into an orchestrator-owned file.

    Raises:
        DecodeError: If the source is missing, unreadable or empty
    """
    source = Path(source)
    check_upload(source)
    try:
        with open(source, 'rb') as src, open(destination, 'wb') as dst:
            shutil.copyfileobj(src, dst)
    except OSError as e:
        raise DecodeError(f"Cannot read uploaded file {source}: {e}", e) from e

    logger.debug(f"Copied upload {source} -> {destination}")
    return Path(destination)
