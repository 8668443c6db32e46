"""
Data models for the dashboard tree and recording sessions
"""

from .enums import BuiltInLayouts, BuiltInWidgets, EventImportance, component_type_name

# Recording configuration (file name template, output directory)
from .recording_config import (
    DEFAULT_FILE_NAME_FORMAT,
    RecordingConfig,
    resolve_file_name,
)

# Recording file records (.sbr JSON lines)
from .recording_models import (
    RECORDING_FILE_EXTENSION,
    EventMarker,
    EventMarkerRecord,
    SessionEndRecord,
    SessionStartRecord,
    ValueChangeRecord,
)

__all__ = [
    "BuiltInLayouts",
    "BuiltInWidgets",
    "EventImportance",
    "component_type_name",
    # Recording configuration
    "DEFAULT_FILE_NAME_FORMAT",
    "RecordingConfig",
    "resolve_file_name",
    # Recording records
    "RECORDING_FILE_EXTENSION",
    "EventMarker",
    "EventMarkerRecord",
    "SessionEndRecord",
    "SessionStartRecord",
    "ValueChangeRecord",
]
