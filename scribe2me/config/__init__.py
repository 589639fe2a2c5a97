"""Simple YAML configuration loader for Scribe2Me."""

import os
import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "backend": "faster-whisper",
        "models_directory": "models",
        "model_name": None,
        "device": "cpu",
        "compute_type": "int8",
        "language": None,
    },
    "google_cloud": {
        "credentials_path": None,
        "language": "en-US",
        "use_enhanced_model": True,
        "enable_automatic_punctuation": True,
    },
    "audio": {
        "sample_rate": 16000,
        "chunk_size": 1024,
        "channels": 1,
    },
    "transcoder": {
        "ffmpeg_path": "ffmpeg",
    },
    "storage": {
        "data_directory": "data",
        "output_directory": None,
        "bundled_samples_directory": None,
    },
    "output": {
        "mode": "subtitles",
        "prefix": "whisper",
    },
    "playback": {
        "play_samples": False,
    },
    "benchmark": {
        "threads": 6,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/scribe2me.log",
        "console_output": True,
    },
}

# Keys holding filesystem paths that are resolved against the config file's directory
PATH_KEYS = (
    "engine.models_directory",
    "google_cloud.credentials_path",
    "storage.data_directory",
    "storage.output_directory",
    "storage.bundled_samples_directory",
    "logging.file_path",
)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` on top of ``base`` (returns a new dict)."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Scribe2MeConfig:
    """Scribe2Me configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for scribe2me.yaml
                        in the current directory and falls back to built-in defaults.
        """
        if config_path is None and Path("scribe2me.yaml").exists():
            config_path = "scribe2me.yaml"

        if config_path is None:
            self.config_file: Optional[Path] = None
            logger.info("No configuration file given, using built-in defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        self.config_file = Path(config_path)
        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any]) -> "Scribe2MeConfig":
        """Build a configuration in memory, merged over the defaults."""
        instance = cls.__new__(cls)
        instance.config_file = None
        instance.config = _merge(DEFAULT_CONFIG, overrides)
        return instance

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        config = _merge(DEFAULT_CONFIG, loaded)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for key_path in PATH_KEYS:
            section, key = key_path.split('.')
            value = config.get(section, {}).get(key)
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'engine.backend').

        Args:
            key_path: Dot-separated key path (e.g., 'storage.data_directory')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return default if value is None else value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'output.mode')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())

    def get_output_directory(self) -> str:
        """Get the user-visible directory where transcripts are saved."""
        output_dir = self.get('storage.output_directory')
        if not output_dir:
            return str(Path(self.get_data_directory()) / "transcripts")
        return str(Path(output_dir).absolute())

    def get_models_directory(self) -> str:
        """Get model discovery directory path."""
        return str(Path(self.get('engine.models_directory', 'models')).absolute())
