"""Configuration module — frozen dataclass loaded from YAML and environment variables."""

import os
import logging
from dataclasses import dataclass

import yaml

from rollover.naming import RolloverMode

logger = logging.getLogger(__name__)

MIN_FILE_COUNT = 1


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class RotationConfig:
    file_count: int = 10
    size_limit_bytes: int = 0  # 0 = unlimited
    file_prefix: str = "application.log"
    daily: bool = False
    directory: str = "./logs"
    sweep_initial_delay_seconds: float = 60
    sweep_interval_seconds: float = 24 * 60 * 60
    max_rollover_attempts: int = 10
    sweep_after_rollover: bool = False

    def __post_init__(self):
        if self.file_count < MIN_FILE_COUNT:
            object.__setattr__(self, "file_count", MIN_FILE_COUNT)
        if self.size_limit_bytes < 0:
            raise ValueError(f"size_limit_bytes must be >= 0, got {self.size_limit_bytes}")
        if self.sweep_initial_delay_seconds < 0:
            raise ValueError("sweep_initial_delay_seconds must be >= 0")
        if self.sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")
        if self.max_rollover_attempts < 1:
            raise ValueError("max_rollover_attempts must be >= 1")

    @property
    def mode(self) -> RolloverMode:
        return RolloverMode.for_settings(self.daily, self.size_limit_bytes)

    @property
    def active_path(self) -> str:
        """The prefix itself when it carries a directory, otherwise directory/prefix."""
        if os.path.dirname(self.file_prefix):
            return self.file_prefix
        return os.path.join(self.directory, self.file_prefix)


def load_yaml_config(path: str | None) -> dict:
    """Load the ``rotation`` section from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    section = data.get("rotation", {}) if isinstance(data, dict) else {}
    return section or {}


def load_config(yaml_data: dict | None = None) -> RotationConfig:
    """Build RotationConfig from defaults, then YAML data, then environment variables."""
    yaml_data = yaml_data or {}

    def pick(env_name: str, key: str, default):
        value = os.environ.get(env_name)
        if value is not None:
            return value
        return yaml_data.get(key, default)

    # LOG_LIMIT_BYTES takes precedence over LOG_LIMIT_MB
    raw_bytes = os.environ.get("LOG_LIMIT_BYTES")
    raw_mb = os.environ.get("LOG_LIMIT_MB")
    if raw_bytes is not None:
        limit = int(raw_bytes)
    elif raw_mb is not None:
        limit = int(float(raw_mb) * 1024 * 1024)
    else:
        limit = int(yaml_data.get("size_limit_bytes", RotationConfig.size_limit_bytes))

    return RotationConfig(
        file_count=int(pick("LOG_FILE_COUNT", "file_count", RotationConfig.file_count)),
        size_limit_bytes=limit,
        file_prefix=str(pick("LOG_FILE_PREFIX", "file_prefix", RotationConfig.file_prefix)),
        daily=_parse_bool(pick("LOG_DAILY", "daily", RotationConfig.daily)),
        directory=str(pick("LOG_DIR", "directory", RotationConfig.directory)),
        sweep_initial_delay_seconds=float(
            pick("SWEEP_INITIAL_DELAY_SECONDS", "sweep_initial_delay_seconds",
                 RotationConfig.sweep_initial_delay_seconds)
        ),
        sweep_interval_seconds=float(
            pick("SWEEP_INTERVAL_SECONDS", "sweep_interval_seconds",
                 RotationConfig.sweep_interval_seconds)
        ),
        max_rollover_attempts=int(
            pick("MAX_ROLLOVER_ATTEMPTS", "max_rollover_attempts",
                 RotationConfig.max_rollover_attempts)
        ),
        sweep_after_rollover=_parse_bool(
            pick("SWEEP_AFTER_ROLLOVER", "sweep_after_rollover",
                 RotationConfig.sweep_after_rollover)
        ),
    )
