"""
Recording Configuration Model

Settings for recording sessions: file name template, where recording files
are written and how the writer buffers records. Supports JSON persistence
and sensible defaults.

Config File Location: ~/.shuffleboard/recording_config.json
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME_FORMAT = "recording-${time}"
DATE_PLACEHOLDER = "${date}"
TIME_PLACEHOLDER = "${time}"

# Sortable, unambiguous and file-system safe
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%Y-%m-%d_%H-%M-%S"


def resolve_file_name(template: str, started_at: datetime) -> str:
    """
    Substitute ${date} and ${time} with the session start.

    Args:
        template: File name template, e.g. "run-${date}"
        started_at: Session start timestamp

    Returns:
        Resolved file name without extension
    """
    return template.replace(DATE_PLACEHOLDER, started_at.strftime(DATE_FORMAT)).replace(
        TIME_PLACEHOLDER, started_at.strftime(TIME_FORMAT)
    )


@dataclass
class RecordingConfig:
    """
    Recording configuration.

    Attributes:
        file_name_format: Template for new recording files
        recordings_dir: Directory recording files are written to
        buffer_size: Records buffered before a flush
        record_metadata: Also record .metadata keys (widget layout changes)
        last_modified: When config was last saved
    """

    file_name_format: str = DEFAULT_FILE_NAME_FORMAT
    recordings_dir: str = "recordings"
    buffer_size: int = 50
    record_metadata: bool = False
    last_modified: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Serialize config to dictionary for JSON storage."""
        return {
            "file_name_format": self.file_name_format,
            "recordings_dir": self.recordings_dir,
            "buffer_size": self.buffer_size,
            "record_metadata": self.record_metadata,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecordingConfig":
        """Deserialize config from dictionary."""
        last_modified = None
        if data.get("last_modified"):
            last_modified = datetime.fromisoformat(data["last_modified"])

        return cls(
            file_name_format=data.get("file_name_format") or DEFAULT_FILE_NAME_FORMAT,
            recordings_dir=data.get("recordings_dir", "recordings"),
            buffer_size=int(data.get("buffer_size", 50)),
            record_metadata=bool(data.get("record_metadata", False)),
            last_modified=last_modified,
        )

    def save(self, filepath: Optional[str] = None) -> None:
        """Save config to JSON file. Creates parent directories if needed.

        Args:
            filepath: Path to save config. Uses default path if not provided.
        """
        path = Path(filepath) if filepath else self.get_default_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        self.last_modified = datetime.now()
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Recording config saved to {path}")

    @classmethod
    def load(cls, filepath: Optional[str] = None) -> "RecordingConfig":
        """
        Load config from JSON file.

        Args:
            filepath: Path to config file. Uses default path if not provided.

        Returns default config if file doesn't exist or is invalid.
        """
        path = Path(filepath) if filepath else cls.get_default_config_path()

        if not path.exists():
            logger.info(f"Config file not found at {path}, using defaults")
            return cls()

        try:
            with open(path) as f:
                data = json.load(f)
            config = cls.from_dict(data)
            logger.info(f"Recording config loaded from {path}")
            return config
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            logger.warning(f"Invalid config file at {path}: {e}, using defaults")
            return cls()

    def has_custom_format(self) -> bool:
        return self.file_name_format != DEFAULT_FILE_NAME_FORMAT

    @staticmethod
    def get_default_config_path() -> Path:
        return Path.home() / ".shuffleboard" / "recording_config.json"
