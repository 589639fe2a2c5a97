"""External transcoding of arbitrary audio into canonical PCM WAV."""

import logging
import subprocess
from pathlib import Path
from typing import List

from ..exceptions import TranscodeError

logger = logging.getLogger(__name__)


class AudioTranscoder:
    """Wraps ffmpeg to normalize any container/codec to 16 kHz mono 16-bit PCM."""

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        self.ffmpeg_path = ffmpeg_path

    def build_command(self, input_path: Path, output_path: Path,
                      target_rate: int = 16000, target_channels: int = 1,
                      codec: str = "pcm_s16le") -> List[str]:
        return [
            self.ffmpeg_path, "-y",
            "-i", str(input_path),
            "-vn",
            "-ar", str(target_rate),
            "-ac", str(target_channels),
            "-c:a", codec,
            str(output_path),
        ]

    def convert(self, input_path: Path, output_path: Path,
                target_rate: int = 16000, target_channels: int = 1,
                codec: str = "pcm_s16le") -> Path:
        """Convert ``input_path`` into a canonical WAV at ``output_path``.

        Raises:
            TranscodeError: If ffmpeg cannot be started or exits with non-zero status
        """
        cmd = self.build_command(input_path, output_path, target_rate, target_channels, codec)
        logger.info(f"Transcoding {input_path} -> {output_path}")

        try:
            completed = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except FileNotFoundError as e:
            logger.error(f"Transcoder not found: {self.ffmpeg_path}")
            raise TranscodeError(None, f"Transcoder not found: {self.ffmpeg_path}") from e
        except OSError as e:
            logger.error(f"Cannot run transcoder {self.ffmpeg_path}: {e}")
            raise TranscodeError(None, f"Cannot run transcoder {self.ffmpeg_path}: {e}") from e

        if completed.returncode != 0:
            stderr = completed.stderr.decode(errors="replace").strip() if completed.stderr else ""
            logger.error(f"FFmpeg error (exit {completed.returncode}): {stderr[-500:]}")
            raise TranscodeError(completed.returncode)

        return Path(output_path)
