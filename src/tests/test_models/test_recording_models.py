"""
Tests for recording file records and EventMarker
"""

import json
from datetime import datetime

import pytest
from pydantic import ValidationError

from shuffleboard.models.enums import EventImportance
from shuffleboard.models.recording_models import (
    SCHEMA_VERSION,
    EventMarker,
    EventMarkerRecord,
    SessionEndRecord,
    SessionStartRecord,
    ValueChangeRecord,
    record_to_json,
)


class TestEventMarker:
    """Tests for EventMarker"""

    def test_to_info(self):
        marker = EventMarker(name="Brownout", description="Battery dip", importance=EventImportance.HIGH)
        assert marker.to_info() == ["Battery dip", "HIGH"]

    def test_none_description_becomes_empty(self):
        marker = EventMarker(name="x", description=None, importance=EventImportance.LOW)
        assert marker.description == ""

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            EventMarker(name="", importance=EventImportance.LOW)

    def test_importance_serialized_by_name(self):
        marker = EventMarker(
            name="x", importance=EventImportance.CRITICAL, timestamp=datetime(2024, 1, 1)
        )
        assert marker.model_dump(mode="json")["importance"] == "CRITICAL"


class TestRecords:
    """Tests for the JSON-lines records"""

    def test_session_start(self):
        record = json.loads(record_to_json(SessionStartRecord(file_name="run-1")))
        assert record["type"] == "session_start"
        assert record["file_name"] == "run-1"
        assert record["version"] == SCHEMA_VERSION

    def test_value_change_with_array(self):
        record = json.loads(record_to_json(ValueChangeRecord(key="/a", value=(1.0, 2.0))))
        assert record["type"] == "value_change"
        assert record["value"] == [1.0, 2.0]
        assert record["deleted"] is False

    def test_event_marker_from_info(self):
        record = EventMarkerRecord.from_info("Brownout", ("dip", "HIGH"))
        assert record.description == "dip"
        assert record.importance == "HIGH"

    def test_event_marker_from_short_info(self):
        record = EventMarkerRecord.from_info("x", [])
        assert record.description == ""
        assert record.importance == "NORMAL"

    def test_session_end(self):
        record = json.loads(record_to_json(SessionEndRecord(record_count=3, event_count=1)))
        assert record["type"] == "session_end"
        assert record["record_count"] == 3
        assert record["event_count"] == 1

    def test_one_line(self):
        assert "\n" not in record_to_json(EventMarkerRecord(name="a", importance="LOW"))
