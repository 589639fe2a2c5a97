"""Audio capture, playback, decoding and transcoding."""

from .capture import AudioCapture
from .playback import AudioPlayback
from .decoder import decode_wave_file, check_upload, copy_upload
from .transcoder import AudioTranscoder

__all__ = [
    'AudioCapture',
    'AudioPlayback',
    'decode_wave_file',
    'copy_upload',
    'AudioTranscoder',
]
