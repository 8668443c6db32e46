"""
Configuration for the dashboard runtime

All settings can be overridden via environment variables. Invalid values
fall back to defaults with a warning; validate() rejects combinations that
cannot work.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration validation error"""

    pass


def _safe_int_env(name: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    """
    Safely parse integer environment variable with bounds.
    Falls back to default on invalid values.
    """
    try:
        value = int(os.getenv(name, str(default)))
    except (ValueError, TypeError):
        logger.warning(f"Invalid {name}, using default {default}")
        return default
    if min_val is not None:
        value = max(min_val, value)
    if max_val is not None:
        value = min(max_val, value)
    return value


def _safe_float_env(name: str, default: float, min_val: float | None = None) -> float:
    try:
        value = float(os.getenv(name, str(default)))
    except (ValueError, TypeError):
        logger.warning(f"Invalid {name}, using default {default}")
        return default
    if min_val is not None:
        value = max(min_val, value)
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ShuffleboardConfig:
    """
    Runtime configuration.

    Attributes:
        recordings_dir: Where the recording writer puts .sbr files
        log_dir: Directory for rotating log files
        log_level: Console log level
        file_logging: Write app.log / errors.log
        host: WebSocket broadcaster bind address
        port: WebSocket broadcaster port
        update_period: Seconds between update() passes in the runner
    """

    recordings_dir: Path = field(
        default_factory=lambda: Path(os.getenv("SHUFFLEBOARD_RECORDINGS_DIR", "recordings"))
    )
    log_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("SHUFFLEBOARD_LOG_DIR", str(Path.home() / ".shuffleboard" / "logs"))
        ).expanduser()
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("SHUFFLEBOARD_LOG_LEVEL", "INFO").upper()
    )
    file_logging: bool = field(default_factory=lambda: _bool_env("SHUFFLEBOARD_FILE_LOGGING", True))
    host: str = field(default_factory=lambda: os.getenv("SHUFFLEBOARD_HOST", "localhost"))
    port: int = field(
        default_factory=lambda: _safe_int_env("SHUFFLEBOARD_PORT", 5810, min_val=1, max_val=65535)
    )
    update_period: float = field(
        default_factory=lambda: _safe_float_env("SHUFFLEBOARD_UPDATE_PERIOD", 0.02, min_val=0.001)
    )

    @property
    def ws_url(self) -> str:
        """WebSocket broadcaster URL."""
        return f"ws://{self.host}:{self.port}"

    def validate(self) -> "ShuffleboardConfig":
        """Raise ConfigError for unusable settings. Returns self for chaining."""
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.log_level}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}")
        if self.update_period <= 0:
            raise ConfigError(f"Update period must be positive: {self.update_period}")
        if self.recordings_dir.exists() and not self.recordings_dir.is_dir():
            raise ConfigError(f"Recordings path is not a directory: {self.recordings_dir}")
        return self

    def to_dict(self) -> dict:
        data = asdict(self)
        data["recordings_dir"] = str(self.recordings_dir)
        data["log_dir"] = str(self.log_dir)
        return data

    def save(self, filepath: str | Path) -> None:
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Config saved to {path}")

    @classmethod
    def load(cls, filepath: str | Path) -> "ShuffleboardConfig":
        """
        Load config from JSON, environment defaults for missing keys.

        Raises:
            ConfigError: If the file exists but cannot be parsed
        """
        path = Path(filepath)
        config = cls()
        if not path.exists():
            logger.info(f"Config file not found at {path}, using defaults")
            return config

        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e

        for key, value in data.items():
            if not hasattr(config, key):
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            if key in ("recordings_dir", "log_dir"):
                value = Path(value)
            setattr(config, key, value)
        return config
