"""
Recording Data Models

Logical record format of a recording file (.sbr). A file is a sequence of
JSON lines, one record per line:

    session_start  -> resolved file name and session start time
    value_change   -> a dashboard key changed while recording
    event_marker   -> an operator/robot event {name, description, importance}
    session_end    -> record counts when the session closes

Schema Version: 1.0.0
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_serializer, field_validator

from shuffleboard.models.enums import EventImportance

RECORDING_FILE_EXTENSION = ".sbr"
SCHEMA_VERSION = "1.0.0"


class EventMarker(BaseModel):
    """
    A discrete, timestamped, severity-tagged note for the recording stream.

    Name must be non-empty; the timestamp defaults to the moment of creation.
    """

    name: str = Field(..., min_length=1, description="Event name")
    description: str = Field("", description="Free-form event description")
    importance: EventImportance = Field(..., description="Event importance")
    timestamp: datetime = Field(default_factory=datetime.now, description="Emission time")

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_serializer("importance")
    def _importance_name(self, importance: EventImportance) -> str:
        return importance.simple_name

    def to_info(self) -> list[str]:
        """Namespace form: [description, IMPORTANCE]."""
        return [self.description, self.importance.simple_name]


class SessionStartRecord(BaseModel):
    """First record of every recording file."""

    type: Literal["session_start"] = "session_start"
    file_name: str
    timestamp: datetime = Field(default_factory=datetime.now)
    version: str = SCHEMA_VERSION


class ValueChangeRecord(BaseModel):
    """A dashboard value changed during the session."""

    type: Literal["value_change"] = "value_change"
    key: str
    value: Any = None
    deleted: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)


class EventMarkerRecord(BaseModel):
    """An event marker observed during the session."""

    type: Literal["event_marker"] = "event_marker"
    name: str
    description: str = ""
    importance: str
    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_info(cls, name: str, info: list[str] | tuple[str, ...]) -> "EventMarkerRecord":
        """Build from the namespace [description, IMPORTANCE] pair."""
        description = info[0] if len(info) > 0 else ""
        importance = info[1] if len(info) > 1 else EventImportance.NORMAL.simple_name
        return cls(name=name, description=description, importance=importance)


class SessionEndRecord(BaseModel):
    """Last record of a cleanly closed recording file."""

    type: Literal["session_end"] = "session_end"
    record_count: int = 0
    event_count: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)


def record_to_json(record: BaseModel) -> str:
    """Serialize a record to one JSON line (without newline)."""
    return record.model_dump_json()
