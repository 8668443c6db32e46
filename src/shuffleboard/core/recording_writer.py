"""
RecordingWriter - writes recording sessions to .sbr files

Follows /Shuffleboard/.recording/RecordData in the shared namespace: when it
turns true a file named after .recording/FileName is opened, dashboard
value changes and event markers are appended as JSON lines, and the file is
closed with a session_end record when RecordData turns false.

Never raises into the namespace listener; file errors are logged, and after
repeated failures the session is closed.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

from pydantic import BaseModel

from shuffleboard.constants import (
    BASE_TABLE_NAME,
    EVENT_INFO_KEY,
    EVENT_TIMESTAMP_KEY,
    EVENTS_TABLE_NAME,
    FILE_NAME_KEY,
    METADATA_TABLE,
    RECORD_DATA_KEY,
    RECORDING_TABLE,
)
from shuffleboard.foundation.broadcaster import to_wire
from shuffleboard.foundation.namespace import EntryKind, EntryNamespace, join_path
from shuffleboard.models.recording_config import (
    DEFAULT_FILE_NAME_FORMAT,
    RecordingConfig,
    resolve_file_name,
)
from shuffleboard.models.recording_models import (
    RECORDING_FILE_EXTENSION,
    EventMarkerRecord,
    SessionEndRecord,
    SessionStartRecord,
    ValueChangeRecord,
    record_to_json,
)
from shuffleboard.services.event_bus import EventBus, Events

logger = logging.getLogger(__name__)


class RecordingError(Exception):
    """Recording file could not be created or written"""

    pass


class RecordingWriter:
    """
    Namespace-driven recording file writer.

    Usage:
        with RecordingWriter(namespace, "recordings") as writer:
            controller.start_recording()
            ...
            controller.stop_recording()
        writer.get_status()
    """

    def __init__(
        self,
        namespace: EntryNamespace,
        recordings_dir: str | Path = "recordings",
        buffer_size: int = 50,
        record_metadata: bool = False,
        event_bus: EventBus | None = None,
        max_errors: int = 5,
    ):
        """
        Args:
            namespace: Namespace the dashboard and recording controller write to
            recordings_dir: Directory for .sbr files, created if missing
            buffer_size: Records buffered before a flush
            record_metadata: Also record .metadata keys
            event_bus: Receives RECORDING_FILE_OPENED / RECORDING_FILE_CLOSED
            max_errors: Consecutive write failures before the session is closed

        Raises:
            RecordingError: If the directory cannot be created
        """
        self.recordings_dir = Path(recordings_dir)
        self.buffer_size = max(1, buffer_size)
        self.record_metadata = record_metadata
        self.max_errors = max_errors
        self._namespace = namespace
        self._event_bus = event_bus

        try:
            self.recordings_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RecordingError(f"Cannot access recordings directory: {e}")

        self._record_data_key = join_path(RECORDING_TABLE, RECORD_DATA_KEY)
        self._file_name_key = join_path(RECORDING_TABLE, FILE_NAME_KEY)
        self._recording_prefix = RECORDING_TABLE + "/"
        self._events_prefix = join_path(RECORDING_TABLE, EVENTS_TABLE_NAME) + "/"
        self._metadata_prefix = METADATA_TABLE + "/"

        self._lock = threading.RLock()
        self._file: TextIO | None = None
        self.current_file: Path | None = None
        self._buffer: list[str] = []
        self.record_count = 0
        self.event_count = 0
        self.error_count = 0
        self.total_bytes_written = 0
        self.sessions_written = 0
        self._closed = False

        self._listener_handle = namespace.add_listener(self._on_change, BASE_TABLE_NAME + "/")
        logger.info(f"RecordingWriter initialized: {self.recordings_dir} (buffer_size={buffer_size})")

    @classmethod
    def from_config(
        cls, namespace: EntryNamespace, config: RecordingConfig, event_bus: EventBus | None = None
    ) -> "RecordingWriter":
        return cls(
            namespace,
            config.recordings_dir,
            buffer_size=config.buffer_size,
            record_metadata=config.record_metadata,
            event_bus=event_bus,
        )

    # ---- namespace listener -------------------------------------------

    def _on_change(self, key: str, value: Any, kind: EntryKind) -> None:
        try:
            with self._lock:
                if self._closed:
                    return
                if key == self._record_data_key:
                    if kind != EntryKind.DELETE and value is True:
                        self._open_session()
                    else:
                        self._close_session()
                elif self._file is None:
                    return
                elif key.startswith(self._events_prefix):
                    if kind != EntryKind.DELETE and key.endswith("/" + EVENT_INFO_KEY):
                        self._record_event(key, value)
                elif key.startswith(self._recording_prefix):
                    return
                elif key.startswith(self._metadata_prefix) and not self.record_metadata:
                    return
                else:
                    self._append(
                        ValueChangeRecord(
                            key=key,
                            value=to_wire(value),
                            deleted=kind == EntryKind.DELETE,
                        )
                    )
                    self.record_count += 1
        except RecordingError as e:
            logger.error(f"Recording failed at {key}: {e}")
            with self._lock:
                self._close_session()
        except Exception as e:
            logger.error(f"Failed to record {key}: {e}", exc_info=True)

    def _record_event(self, key: str, info: Any) -> None:
        name = key[len(self._events_prefix): -len(EVENT_INFO_KEY) - 1]
        record = EventMarkerRecord.from_info(name, list(info))
        emitted = self._namespace.get_value(f"{self._events_prefix}{name}/{EVENT_TIMESTAMP_KEY}")
        if isinstance(emitted, float):
            record.timestamp = datetime.fromtimestamp(emitted)
        self._append(record)
        self.event_count += 1

    # ---- session lifecycle --------------------------------------------

    def _open_session(self) -> None:
        if self._file is not None:
            return

        file_name = self._namespace.get_value(self._file_name_key)
        if not isinstance(file_name, str) or not file_name:
            file_name = resolve_file_name(DEFAULT_FILE_NAME_FORMAT, datetime.now())
        path = self._unique_path(file_name)

        try:
            handle = open(path, "w", encoding="utf-8", buffering=8192)
        except OSError as e:
            raise RecordingError(f"Failed to open recording file {path}: {e}")

        self._file = handle
        self.current_file = path
        self._buffer = []
        self.record_count = 0
        self.event_count = 0
        self.error_count = 0
        self.total_bytes_written = 0

        self._append(SessionStartRecord(file_name=file_name))
        self._flush()
        logger.info(f"Recording to {path}")
        self._publish(Events.RECORDING_FILE_OPENED, {"path": str(path)})

    def _unique_path(self, file_name: str) -> Path:
        path = self.recordings_dir / f"{file_name}{RECORDING_FILE_EXTENSION}"
        # Templates may contain "/" to sort sessions into subdirectories
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RecordingError(f"Cannot create directory for {file_name}: {e}")
        counter = 0
        while path.exists() and counter < 100:
            counter += 1
            path = self.recordings_dir / f"{file_name}_{counter}{RECORDING_FILE_EXTENSION}"
        if path.exists():
            raise RecordingError(f"Cannot create unique file name for {file_name}")
        return path

    def _close_session(self) -> dict | None:
        if self._file is None:
            return None

        path = self.current_file
        summary = None
        try:
            self._buffer.append(
                record_to_json(
                    SessionEndRecord(record_count=self.record_count, event_count=self.event_count)
                )
            )
            self._flush()
            summary = {
                "filepath": str(path),
                "record_count": self.record_count,
                "event_count": self.event_count,
                "total_bytes_written": self.total_bytes_written,
            }
            logger.info(
                f"Closed recording {path.name} "
                f"({self.record_count} values, {self.event_count} events)"
            )
        except Exception as e:
            logger.error(f"Error closing recording {path}: {e}")
        finally:
            try:
                self._file.close()
            except OSError as e:
                logger.debug(f"Ignoring close error for {path}: {e}")
            self._file = None
            self.current_file = None
            self._buffer = []
            self.sessions_written += 1

        self._publish(Events.RECORDING_FILE_CLOSED, summary or {"filepath": str(path)})
        return summary

    # ---- buffered output ----------------------------------------------

    def _append(self, record: BaseModel) -> None:
        self._buffer.append(record_to_json(record))
        if len(self._buffer) >= self.buffer_size:
            self._flush()

    def _flush(self) -> None:
        """Write buffered records. Called with the lock held."""
        if not self._buffer or self._file is None:
            return
        try:
            for line in self._buffer:
                self.total_bytes_written += self._file.write(line + "\n")
            self._file.flush()
        except OSError as e:
            # Keep the buffer; the next flush retries
            self.error_count += 1
            logger.error(f"Recording flush failed ({self.error_count}/{self.max_errors}): {e}")
            if self.error_count >= self.max_errors:
                self._buffer = []
                raise RecordingError(f"Recording stopped due to repeated errors: {e}")
            return
        self._buffer = []
        self.error_count = 0

    def flush(self) -> None:
        with self._lock:
            self._flush()

    # ---- status / cleanup ---------------------------------------------

    def is_recording(self) -> bool:
        with self._lock:
            return self._file is not None

    def get_status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "recording": self._file is not None,
                "current_file": str(self.current_file) if self.current_file else None,
                "record_count": self.record_count,
                "event_count": self.event_count,
                "buffer_size": len(self._buffer),
                "error_count": self.error_count,
                "total_bytes_written": self.total_bytes_written,
                "sessions_written": self.sessions_written,
                "closed": self._closed,
            }

    def close(self) -> None:
        """Close any open session and stop following the namespace."""
        with self._lock:
            if self._closed:
                return
            self._namespace.remove_listener(self._listener_handle)
            self._close_session()
            self._closed = True
        logger.info("RecordingWriter closed")

    def _publish(self, event: Events, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event, data)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
