"""Configuration management for gpx-viewer.

Handles loading configuration from TOML files, environment variables,
and command-line options with proper precedence.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gpx_viewer.models.track import DEFAULT_TIME_FORMAT

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "gpx-viewer" / "config.toml"
LOCAL_CONFIG_NAME = ".gpx-viewer.toml"


@dataclass
class PlaybackConfig:
    """Playback timing configuration."""

    repeat_interval_ms: int = 20
    frame_rate: float = 60.0

    @property
    def repeat_interval(self) -> float:
        """Held-button step interval in seconds."""
        return self.repeat_interval_ms / 1000

    @property
    def frame_interval(self) -> float:
        """Auto-play step interval in seconds."""
        return 1 / self.frame_rate


@dataclass
class DisplayConfig:
    """Point-list display configuration."""

    time_format: str = DEFAULT_TIME_FORMAT


@dataclass
class LoggingConfig:
    """Log file configuration."""

    directory: Path | None = None


@dataclass
class Config:
    """Main configuration container."""

    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    config_path: Path | None = None


def _get_env_value(key: str, default: str = "") -> str:
    """Get environment variable value."""
    return os.environ.get(key, default)


def _find_config_path() -> Path:
    """Locate the config file when none is given explicitly."""
    if env_config := _get_env_value("GPX_VIEWER_CONFIG"):
        return Path(env_config)
    local_config = Path(LOCAL_CONFIG_NAME)
    if local_config.exists():
        return local_config
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_path: Path to configuration file. If None, uses
            ``$GPX_VIEWER_CONFIG``, then ``./.gpx-viewer.toml``, then the
            default location.

    Returns:
        Populated Config object.

    Raises:
        ValueError: If a configured value is out of range.
    """
    config = Config()

    if config_path is None:
        config_path = _find_config_path()

    config.config_path = config_path

    if config_path.exists():
        config = _load_from_file(config_path, config)

    config = _apply_env_overrides(config)
    _validate(config)

    return config


def _load_from_file(path: Path, config: Config) -> Config:
    """Load configuration from TOML file.

    Args:
        path: Path to TOML file.
        config: Existing config to update.

    Returns:
        Updated Config object.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    try:
        if "playback" in data:
            playback = data["playback"]
            config.playback.repeat_interval_ms = int(
                playback.get("repeat_interval_ms", config.playback.repeat_interval_ms)
            )
            config.playback.frame_rate = float(
                playback.get("frame_rate", config.playback.frame_rate)
            )

        if "display" in data:
            time_format = data["display"].get("time_format", config.display.time_format)
            if not isinstance(time_format, str):
                raise TypeError(f"time_format must be a string, got {time_format!r}")
            config.display.time_format = time_format

        if "logging" in data:
            logging_section = data["logging"]
            if "directory" in logging_section:
                config.logging.directory = Path(logging_section["directory"])
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in {path}: {e}") from e

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to configuration.

    Args:
        config: Config to update.

    Returns:
        Updated Config object.
    """
    if interval := _get_env_value("GPX_VIEWER_REPEAT_INTERVAL_MS"):
        config.playback.repeat_interval_ms = int(interval)
    if frame_rate := _get_env_value("GPX_VIEWER_FRAME_RATE"):
        config.playback.frame_rate = float(frame_rate)
    if log_dir := _get_env_value("GPX_VIEWER_LOG_DIR"):
        config.logging.directory = Path(log_dir)

    return config


def _validate(config: Config) -> None:
    if config.playback.repeat_interval_ms <= 0:
        raise ValueError(
            f"playback.repeat_interval_ms must be positive, got {config.playback.repeat_interval_ms}"
        )
    if config.playback.frame_rate <= 0:
        raise ValueError(f"playback.frame_rate must be positive, got {config.playback.frame_rate}")
