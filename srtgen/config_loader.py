"""Handles loading configuration from defaults, YAML files and the environment."""

import yaml
import os
import logging
import tempfile
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

AUDIO_FORMATS = ("mp3", "wav")
RESPONSE_FORMATS = ("verbose_json", "srt")

# Environment variable -> AppConfig field
ENV_OVERRIDES = {
    "OPENAI_API_KEY": "openai_api_key",
    "SRTGEN_UPLOAD_DIR": "upload_dir",
    "FFMPEG_PATH": "ffmpeg_path",
    "FFMPEG_TIMEOUT_SECONDS": "ffmpeg_timeout_seconds",
    "SRTGEN_AUDIO_FORMAT": "audio_format",
    "TRANSCRIPTION_MODEL": "transcription_model",
    "TRANSCRIPTION_RESPONSE_FORMAT": "response_format",
    "TRANSCRIPTION_LANGUAGE": "transcription_language",
    "TRANSCRIPTION_TIMEOUT_SECONDS": "transcription_timeout_seconds",
    "LOG_LEVEL": "log_level",
    "LOG_DIR": "log_dir",
    "LOG_FILE": "log_file",
    "HOST": "host",
    "PORT": "port",
    "CORS_ORIGINS": "cors_origins",
}


@dataclass(frozen=True)
class AppConfig:
    """Immutable settings, built once at startup and passed to the pipeline."""
    openai_api_key: Optional[str] = None
    upload_dir: str = os.path.join(tempfile.gettempdir(), "srtgen-uploads")
    ffmpeg_path: str = "ffmpeg"
    ffmpeg_timeout_seconds: float = 300.0
    audio_format: str = "mp3"
    sample_rate: int = 16000
    channels: int = 1
    transcription_model: str = "whisper-1"
    response_format: str = "verbose_json"
    transcription_language: Optional[str] = None
    transcription_timeout_seconds: float = 600.0
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file: str = "server.log"
    console_logging: bool = True
    host: str = "127.0.0.1"
    port: int = 5174
    cors_origins: Tuple[str, ...] = ("*",)

    @property
    def has_credential(self) -> bool:
        return bool(self.openai_api_key)


def _coerce(name: str, value: Any) -> Any:
    """Converts raw YAML/env values into the type of the AppConfig field."""
    if name in ("ffmpeg_timeout_seconds", "transcription_timeout_seconds"):
        return float(value)
    if name in ("sample_rate", "channels", "port"):
        return int(value)
    if name == "console_logging":
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if name == "cors_origins":
        if isinstance(value, str):
            return tuple(o.strip() for o in value.split(",") if o.strip())
        return tuple(value)
    if name in ("openai_api_key", "transcription_language"):
        return str(value) if value else None
    return str(value)


class ConfigLoader:
    """Builds an AppConfig from defaults, an optional YAML file and the environment."""

    def load_yaml(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            logger.error(f"Configuration path is not a file: {config_path}")
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except IOError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if config is None:
            # Empty file
            return {}
        if not isinstance(config, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config

    def load_config(
        self,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        use_dotenv: bool = True,
    ) -> AppConfig:
        """
        Builds the application configuration.

        Values are layered: AppConfig defaults, then the YAML file (if given),
        then environment variables.

        Args:
            config_path: Optional path to a YAML configuration file.
            environ: Environment mapping; defaults to os.environ.
            use_dotenv: Whether to load a .env file into os.environ first.

        Returns:
            A validated AppConfig.

        Raises:
            FileNotFoundError: If config_path is given but does not exist.
            ConfigurationError: If any value is invalid.
        """
        if use_dotenv and environ is None:
            load_dotenv()
        env = os.environ if environ is None else environ

        values: Dict[str, Any] = {}
        if config_path:
            known = {f.name for f in fields(AppConfig)}
            for key, value in self.load_yaml(config_path).items():
                if key not in known:
                    logger.warning(f"Ignoring unknown configuration key: {key}")
                    continue
                values[key] = value

        for env_name, field_name in ENV_OVERRIDES.items():
            raw = env.get(env_name)
            if raw is not None and raw != "":
                values[field_name] = raw
        if env.get("SRTGEN_ENV", "").lower() == "production":
            values.setdefault("console_logging", False)

        try:
            coerced = {name: _coerce(name, value) for name, value in values.items()}
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        return self.validate(replace(AppConfig(), **coerced))

    @staticmethod
    def validate(config: AppConfig) -> AppConfig:
        """Checks value ranges and enumerations, returning the config unchanged."""
        if config.audio_format not in AUDIO_FORMATS:
            raise ConfigurationError(
                f"Unsupported audio_format '{config.audio_format}'. Choose one of: {', '.join(AUDIO_FORMATS)}"
            )
        if config.response_format not in RESPONSE_FORMATS:
            raise ConfigurationError(
                f"Unsupported response_format '{config.response_format}'. Choose one of: {', '.join(RESPONSE_FORMATS)}"
            )
        if config.ffmpeg_timeout_seconds <= 0:
            raise ConfigurationError("ffmpeg_timeout_seconds must be positive.")
        if config.transcription_timeout_seconds <= 0:
            raise ConfigurationError("transcription_timeout_seconds must be positive.")
        if config.sample_rate <= 0 or config.channels <= 0:
            raise ConfigurationError("sample_rate and channels must be positive.")
        if not config.upload_dir:
            raise ConfigurationError("upload_dir must not be empty.")
        if not config.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set; transcription requests will be rejected.")
        return config
