"""Engine factory and model discovery for model-agnostic inference."""

import logging
from pathlib import Path

from .base import AbstractInferenceEngine
from ..config import Scribe2MeConfig
from ..exceptions import NoModelFound

logger = logging.getLogger(__name__)

VALID_BACKENDS = ("faster-whisper", "google")


def create_engine(config: Scribe2MeConfig) -> AbstractInferenceEngine:
    """Create the configured inference engine (model not loaded yet).

    Raises:
        ValueError: If the backend is unknown or its dependencies are missing
    """
    backend = config.get("engine.backend", "faster-whisper")

    if backend == "faster-whisper":
        from .whisper_backend import FasterWhisperEngine
        return FasterWhisperEngine(
            device=config.get("engine.device", "cpu"),
            compute_type=config.get("engine.compute_type", "int8"),
            language=config.get("engine.language"),
            model_cache=str(Path(config.get_data_directory()) / "model_cache"),
        )

    elif backend == "google":
        try:
            from .google_backend import GoogleSpeechEngine
        except ImportError as e:
            raise ValueError(
                f"google backend requires google-cloud-speech. "
                f"Install with: pip install google-cloud-speech\n"
                f"Error: {e}"
            )
        return GoogleSpeechEngine(
            sample_rate=config.get("audio.sample_rate", 16000),
            language=config.get("google_cloud.language", "en-US"),
            use_enhanced=config.get("google_cloud.use_enhanced_model", True),
            enable_automatic_punctuation=config.get("google_cloud.enable_automatic_punctuation", True),
        )

    raise ValueError(
        f"Unknown backend: {backend}. Valid options: {', '.join(VALID_BACKENDS)}"
    )


def locate_model(config: Scribe2MeConfig) -> str:
    """Find the model reference the configured engine should load.

    Whisper models: an explicit ``engine.model_name`` wins, otherwise the
    first entry (by name) in the models directory. Google: the service
    account credentials file.

    Raises:
        NoModelFound: If nothing usable exists
    """
    backend = config.get("engine.backend", "faster-whisper")

    if backend == "google":
        creds_path = config.get("google_cloud.credentials_path")
        if not creds_path or not Path(creds_path).exists():
            raise NoModelFound(creds_path or "google_cloud.credentials_path")
        return str(Path(creds_path).absolute())

    model_name = config.get("engine.model_name")
    if model_name:
        return model_name

    models_dir = Path(config.get_models_directory())
    if not models_dir.is_dir():
        raise NoModelFound(str(models_dir))

    candidates = sorted(p for p in models_dir.iterdir() if not p.name.startswith("."))
    if not candidates:
        raise NoModelFound(str(models_dir))

    logger.debug(f"Discovered {len(candidates)} model candidates in {models_dir}")
    return str(candidates[0])
