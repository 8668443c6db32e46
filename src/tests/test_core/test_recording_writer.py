"""
Tests for RecordingWriter
"""

import json
from datetime import datetime

import pytest

from shuffleboard.core.recording_writer import RecordingError, RecordingWriter
from shuffleboard.models.enums import EventImportance
from shuffleboard.models.recording_config import RecordingConfig
from shuffleboard.services.event_bus import Events
from shuffleboard.shuffleboard import Shuffleboard

START = datetime(2024, 3, 9, 14, 5, 7)


def read_records(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


@pytest.fixture
def board(namespace, reporter, event_bus):
    return Shuffleboard(namespace, reporter, event_bus, clock=lambda: START)


@pytest.fixture
def writer(namespace, event_bus, tmp_path):
    with RecordingWriter(namespace, tmp_path / "recordings", buffer_size=1, event_bus=event_bus) as w:
        yield w


class TestRecordingWriterInit:
    """Tests for RecordingWriter initialization"""

    def test_init_creates_directory(self, namespace, tmp_path):
        target = tmp_path / "a" / "b"
        writer = RecordingWriter(namespace, target)
        try:
            assert target.is_dir()
            assert not writer.is_recording()
        finally:
            writer.close()

    def test_unusable_directory_raises(self, namespace, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(RecordingError):
            RecordingWriter(namespace, blocker / "recordings")

    def test_from_config(self, namespace, tmp_path):
        config = RecordingConfig(recordings_dir=str(tmp_path), buffer_size=7, record_metadata=True)
        writer = RecordingWriter.from_config(namespace, config)
        try:
            assert writer.buffer_size == 7
            assert writer.record_metadata is True
        finally:
            writer.close()


class TestRecordingSessions:
    """Tests for session files"""

    def test_session_file_named_from_template(self, board, writer):
        board.set_recording_file_name_format("match-${date}")
        board.start_recording()

        assert writer.current_file.name == "match-2024-03-09.sbr"
        records = read_records(writer.current_file)
        assert records[0]["type"] == "session_start"
        assert records[0]["file_name"] == "match-2024-03-09"

    def test_values_and_events_recorded(self, board, writer):
        tab = board.get_tab("Example")
        tab.add("My Boolean", True)
        board.start_recording()
        board.update()
        board.add_event_marker("Brownout", "Battery dipped", EventImportance.HIGH)
        path = writer.current_file
        board.stop_recording()

        records = read_records(path)
        types = [r["type"] for r in records]
        assert types[0] == "session_start"
        assert types[-1] == "session_end"

        values = {r["key"]: r["value"] for r in records if r["type"] == "value_change"}
        assert values["/Shuffleboard/Example/My Boolean"] is True
        assert "/Shuffleboard/.metadata/Tabs" not in values

        events = [r for r in records if r["type"] == "event_marker"]
        assert events == [
            {
                "type": "event_marker",
                "name": "Brownout",
                "description": "Battery dipped",
                "importance": "HIGH",
                "timestamp": events[0]["timestamp"],
            }
        ]
        assert records[-1]["event_count"] == 1

    def test_repeated_marker_recorded_each_time(self, board, writer):
        board.start_recording()
        board.add_event_marker("Brownout", "Battery dipped", EventImportance.HIGH)
        board.add_event_marker("Brownout", "Battery dipped", EventImportance.HIGH)
        path = writer.current_file
        board.stop_recording()

        events = [r for r in read_records(path) if r["type"] == "event_marker"]
        assert [e["name"] for e in events] == ["Brownout", "Brownout"]
        assert read_records(path)[-1]["event_count"] == 2

    def test_marker_sent_while_idle_recorded_again(self, board, writer):
        """A marker first sent outside a session is still recorded when repeated inside one"""
        board.add_event_marker("Match start", "", EventImportance.NORMAL)
        board.start_recording()
        board.add_event_marker("Match start", "", EventImportance.NORMAL)
        path = writer.current_file
        board.stop_recording()

        events = [r for r in read_records(path) if r["type"] == "event_marker"]
        assert len(events) == 1
        assert events[0]["name"] == "Match start"

    def test_marker_keeps_emission_time(self, board, writer):
        board.start_recording()
        marker = board.add_event_marker("Shot", "", EventImportance.LOW)
        path = writer.current_file
        board.stop_recording()

        events = [r for r in read_records(path) if r["type"] == "event_marker"]
        assert datetime.fromisoformat(events[0]["timestamp"]) == marker.timestamp == START

    def test_nothing_recorded_while_idle(self, board, writer, tmp_path):
        board.get_tab("T").add("x", 1)
        board.update()
        assert list((tmp_path / "recordings").iterdir()) == []

    def test_metadata_optional(self, namespace, board, tmp_path):
        with RecordingWriter(namespace, tmp_path, buffer_size=1, record_metadata=True) as writer:
            board.get_tab("T").add("x", 1).with_size(1, 1)
            board.start_recording()
            board.update()
            path = writer.current_file
            board.stop_recording()

        keys = [r.get("key") for r in read_records(path)]
        assert "/Shuffleboard/.metadata/T/x/Size" in keys

    def test_raw_values_as_hex(self, board, writer):
        board.start_recording()
        board.get_tab("T").add("blob", b"\xde\xad")
        board.update()
        path = writer.current_file
        board.stop_recording()

        values = [r["value"] for r in read_records(path) if r.get("key") == "/Shuffleboard/T/blob"]
        assert values == ["dead"]

    def test_repeated_session_gets_unique_file(self, board, writer):
        board.set_recording_file_name_format("same")
        board.start_recording()
        first = writer.current_file
        board.stop_recording()
        board.start_recording()
        second = writer.current_file
        board.stop_recording()

        assert first.name == "same.sbr"
        assert second.name == "same_1.sbr"
        assert writer.sessions_written == 2

    def test_template_with_subdirectory(self, board, writer, tmp_path):
        """A '/' in the file name format sorts sessions into subdirectories"""
        board.set_recording_file_name_format("${date}/run-${time}")
        board.start_recording()
        assert writer.is_recording()
        board.stop_recording()

        path = tmp_path / "recordings" / "2024-03-09" / "run-2024-03-09_14-05-07.sbr"
        assert path.is_file()
        assert read_records(path)[0]["type"] == "session_start"

    def test_file_events(self, board, writer, event_bus):
        received = []

        def handler(event_dict):
            received.append(event_dict["name"])

        event_bus.subscribe(Events.RECORDING_FILE_OPENED, handler)
        event_bus.subscribe(Events.RECORDING_FILE_CLOSED, handler)
        board.start_recording()
        board.stop_recording()

        assert received == ["recording.file_opened", "recording.file_closed"]

    def test_close_ends_open_session(self, namespace, board, tmp_path):
        writer = RecordingWriter(namespace, tmp_path)
        board.start_recording()
        path = writer.current_file
        writer.close()

        assert read_records(path)[-1]["type"] == "session_end"
        assert writer.get_status()["closed"] is True

    def test_buffered_until_flush(self, namespace, board, tmp_path):
        with RecordingWriter(namespace, tmp_path, buffer_size=100) as writer:
            board.start_recording()
            board.get_tab("T").add("x", 1)
            board.update()
            assert writer.get_status()["buffer_size"] > 0
            writer.flush()
            assert writer.get_status()["buffer_size"] == 0
            board.stop_recording()

    def test_status(self, board, writer):
        board.start_recording()
        status = writer.get_status()
        assert status["recording"] is True
        assert status["current_file"].endswith(".sbr")
