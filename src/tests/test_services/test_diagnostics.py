"""
Tests for DiagnosticReporter
"""

import logging

from shuffleboard.services.diagnostics import DiagnosticReporter, Severity
from shuffleboard.services.event_bus import Events


class TestDiagnosticReporter:
    """Tests for diagnostic reporting"""

    def test_report_error(self, reporter):
        diagnostic = reporter.report_error("Something failed", source="test")

        assert diagnostic.severity == Severity.ERROR
        assert reporter.error_count == 1
        assert reporter.warning_count == 0
        assert reporter.history() == [diagnostic]

    def test_report_warning(self, reporter):
        reporter.report_warning("Careful")
        assert reporter.warning_count == 1
        assert reporter.history()[0].severity == Severity.WARNING

    def test_published_on_event_bus(self, event_bus):
        received = []

        def handler(event_dict):
            received.append(event_dict["data"])

        event_bus.subscribe(Events.DIAGNOSTIC, handler)
        DiagnosticReporter(event_bus).report_error("oops", source="recording")

        assert received[0]["message"] == "oops"
        assert received[0]["severity"] == "error"
        assert received[0]["source"] == "recording"

    def test_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="shuffleboard.services.diagnostics"):
            DiagnosticReporter().report_error("logged message", source="tree")
        assert "[tree] logged message" in caplog.text

    def test_bounded_history(self):
        reporter = DiagnosticReporter(max_history=3)
        for i in range(5):
            reporter.report_error(f"e{i}")

        assert [d.message for d in reporter.history()] == ["e2", "e3", "e4"]
        assert reporter.error_count == 5

    def test_clear(self, reporter):
        reporter.report_error("x")
        reporter.clear()
        assert reporter.error_count == 0
        assert reporter.history() == []

    def test_to_dict(self, reporter):
        data = reporter.report_warning("w", source="s").to_dict()
        assert set(data) == {"severity", "message", "source", "timestamp"}
