"""
Recording Controller

Drives data recording on the dashboard client through the shared
namespace.

State Machine:
    IDLE ──start_recording()──> RECORDING
      ^                             │
      └──────stop_recording()───────┘

Repeated start/stop calls are no-ops. The file name template is resolved
once per session, at start, so changing the format while recording only
affects the next session.

Namespace keys (under /Shuffleboard/.recording):
- RecordData: bool, true while a session is active
- FileNameFormat: raw template set by the program (absent = default)
- FileName: resolved name of the current/last session file
- events/<name>/Info: [description, IMPORTANCE], re-sent for every marker
- events/<name>/Timestamp: emission time (epoch seconds), written before Info
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ValidationError

from shuffleboard.constants import (
    EVENT_INFO_KEY,
    EVENT_TIMESTAMP_KEY,
    EVENTS_TABLE_NAME,
    FILE_NAME_FORMAT_KEY,
    FILE_NAME_KEY,
    RECORD_DATA_KEY,
    RECORDING_TABLE,
)
from shuffleboard.foundation.namespace import Entry, EntryNamespace
from shuffleboard.models.enums import EventImportance
from shuffleboard.models.recording_config import (
    DEFAULT_FILE_NAME_FORMAT,
    RecordingConfig,
    resolve_file_name,
)
from shuffleboard.models.recording_models import EventMarker
from shuffleboard.services.diagnostics import DiagnosticReporter
from shuffleboard.services.event_bus import EventBus, Events

logger = logging.getLogger(__name__)

SOURCE = "recording"


class RecordingState(Enum):
    """Recording session state."""

    IDLE = "idle"
    RECORDING = "recording"


@dataclass(frozen=True)
class MarkerValidation:
    """Outcome of validating an event marker before anything is written."""

    ok: bool
    error: str | None = None


def validate_event_marker(name: str | None, importance: EventImportance | None) -> MarkerValidation:
    """
    Check an event marker's name and importance.

    Returns:
        MarkerValidation with ok=False and the operator message on failure
    """
    if not name:
        return MarkerValidation(False, "Shuffleboard event name was not specified")
    if importance is None:
        return MarkerValidation(False, "Shuffleboard event importance was null")
    if not isinstance(importance, EventImportance):
        return MarkerValidation(False, f"Unknown Shuffleboard event importance: {importance!r}")
    return MarkerValidation(True)


class RecordingController:
    """
    Start/stop recording sessions and emit event markers.

    Usage:
        controller = RecordingController(namespace, reporter)
        controller.set_recording_file_name_format("match-${date}")
        controller.start_recording()
        controller.add_event_marker("Brownout", "Battery dipped", EventImportance.HIGH)
        controller.stop_recording()
    """

    def __init__(
        self,
        namespace: EntryNamespace,
        reporter: DiagnosticReporter | None = None,
        event_bus: EventBus | None = None,
        config: RecordingConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._reporter = reporter or DiagnosticReporter(event_bus)
        self._event_bus = event_bus
        self._clock = clock

        table = namespace.get_table(RECORDING_TABLE)
        self._record_data_entry = table.get_entry(RECORD_DATA_KEY)
        self._file_name_format_entry = table.get_entry(FILE_NAME_FORMAT_KEY)
        self._file_name_entry = table.get_entry(FILE_NAME_KEY)
        self._events_table = table.get_sub_table(EVENTS_TABLE_NAME)

        self._lock = threading.RLock()
        self._state = RecordingState.IDLE
        self._file_name_format = DEFAULT_FILE_NAME_FORMAT
        self._session_start_time: datetime | None = None
        self._active_file_name: str | None = None

        # Callbacks
        self.on_state_change: Callable[[RecordingState, RecordingState], None] | None = None

        if config is not None and config.has_custom_format():
            self.set_recording_file_name_format(config.file_name_format)

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def file_name_format(self) -> str:
        """Template the next session will use."""
        return self._file_name_format

    @property
    def session_start_time(self) -> datetime | None:
        """When the current session started (None while idle)."""
        return self._session_start_time

    @property
    def active_file_name(self) -> str | None:
        """Resolved file name of the current session (None while idle)."""
        return self._active_file_name

    def is_recording(self) -> bool:
        return self._state == RecordingState.RECORDING

    def _transition_to(self, new_state: RecordingState) -> None:
        """Change state, then run on_state_change. Callback errors are reported, not raised."""
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        logger.info(f"Recording state: {old_state.value} -> {new_state.value}")
        if self.on_state_change:
            try:
                self.on_state_change(old_state, new_state)
            except Exception as e:
                logger.error(f"on_state_change callback failed: {e}", exc_info=True)
                self._reporter.report_error(f"Recording state callback failed: {e}", source=SOURCE)

    def start_recording(self) -> None:
        """Start a session. Has no effect if recording is already in progress."""
        with self._lock:
            if self._state == RecordingState.RECORDING:
                logger.debug("start_recording called but already RECORDING")
                return

            started_at = self._clock()
            file_name = resolve_file_name(self._file_name_format, started_at)
            self._session_start_time = started_at
            self._active_file_name = file_name

            # File name first so the client opens the right file when RecordData flips
            self._write(self._file_name_entry, file_name)
            self._write(self._record_data_entry, True)
            self._transition_to(RecordingState.RECORDING)

        logger.info(f"Recording session started: {file_name}")
        self._publish(
            Events.RECORDING_STARTED,
            {"file_name": file_name, "started_at": started_at.isoformat()},
        )

    def stop_recording(self) -> None:
        """Stop the session. Has no effect if no recording is in progress."""
        with self._lock:
            if self._state == RecordingState.IDLE:
                logger.debug("stop_recording called but already IDLE")
                return

            file_name = self._active_file_name
            started_at = self._session_start_time
            self._session_start_time = None
            self._active_file_name = None
            self._write(self._record_data_entry, False)
            self._transition_to(RecordingState.IDLE)

        duration = (self._clock() - started_at).total_seconds() if started_at else 0.0
        logger.info(f"Recording session stopped: {file_name} ({duration:.1f}s)")
        self._publish(Events.RECORDING_STOPPED, {"file_name": file_name, "duration_s": duration})

    def set_recording_file_name_format(self, file_name_format: str | None) -> None:
        """
        Set the file name template for new recordings.

        ${date} and ${time} are replaced with the session start date and
        date+time. A session already in progress keeps its file.
        """
        if file_name_format is None:
            self.clear_recording_file_name_format()
            return

        with self._lock:
            self._file_name_format = file_name_format
            self._write(self._file_name_format_entry, file_name_format)
        if "${time}" not in file_name_format:
            logger.debug(f"File name format without ${{time}} may overwrite files: {file_name_format}")
        self._publish(Events.RECORDING_FORMAT_CHANGED, {"format": file_name_format})

    def clear_recording_file_name_format(self) -> None:
        """Go back to the default template for new recordings."""
        with self._lock:
            self._file_name_format = DEFAULT_FILE_NAME_FORMAT
            self._guarded(self._file_name_format_entry, self._file_name_format_entry.delete)
        self._publish(Events.RECORDING_FORMAT_CHANGED, {"format": DEFAULT_FILE_NAME_FORMAT})

    def add_event_marker(
        self,
        name: str | None,
        description: "str | EventImportance | None" = "",
        importance: EventImportance | None = None,
    ) -> EventMarker | None:
        """
        Notify the dashboard of an event.

        If the dashboard is recording, the event is also recorded. An empty
        name or a missing importance sends nothing and reports a diagnostic.

        Args:
            name: Event name
            description: Event description; an EventImportance may be passed
                here instead, as in add_event_marker(name, importance)
            importance: Event importance

        Returns:
            The published EventMarker, or None if nothing was sent
        """
        if isinstance(description, EventImportance) and importance is None:
            description, importance = "", description

        validation = validate_event_marker(name, importance)
        if not validation.ok:
            self._reporter.report_error(validation.error, source=SOURCE)
            return None

        try:
            marker = EventMarker(
                name=name,
                description=description or "",
                importance=importance,
                timestamp=self._clock(),
            )
        except ValidationError as e:
            self._reporter.report_error(f"Invalid Shuffleboard event {name!r}: {e}", source=SOURCE)
            return None

        event_table = self._events_table.get_sub_table(marker.name)
        self._write(event_table.get_entry(EVENT_TIMESTAMP_KEY), marker.timestamp.timestamp())
        info_entry = event_table.get_entry(EVENT_INFO_KEY)
        written = self._write(info_entry, marker.to_info(), always_notify=True)
        if written is None:
            return None
        if not written:
            self._reporter.report_error(
                f"Event {marker.name!r} rejected: {info_entry.key} holds another type", source=SOURCE
            )
            return None

        logger.debug(f"Event marker {marker.name} ({marker.importance.simple_name})")
        self._publish(Events.EVENT_MARKER_ADDED, marker.model_dump(mode="json"))
        return marker

    def get_status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "state": self._state.value,
                "file_name_format": self._file_name_format,
                "active_file_name": self._active_file_name,
                "session_start_time": (
                    self._session_start_time.isoformat() if self._session_start_time else None
                ),
            }

    # ---- helpers ------------------------------------------------------

    def _write(self, entry: Entry, value: Any, always_notify: bool = False) -> bool | None:
        """
        Write through the namespace.

        Returns:
            True if the write happened, False if the namespace skipped it
            (unchanged or wrong type), None if it raised
        """
        write = entry.publish if always_notify else entry.set
        return self._guarded(entry, lambda: write(value))

    def _guarded(self, entry: Entry, operation: Callable[[], Any]) -> bool | None:
        """Run a namespace operation; faults become diagnostics."""
        try:
            return bool(operation())
        except Exception as e:
            self._reporter.report_error(f"Failed to write {entry.key}: {e}", source=SOURCE)
            return None

    def _publish(self, event: Events, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event, data)
