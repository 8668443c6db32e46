"""Services package - event bus, logging, diagnostics and recording control."""

from .diagnostics import Diagnostic, DiagnosticReporter, Severity
from .event_bus import EventBus, Events
from .logger import get_logger, setup_logging
from .recording_controller import RecordingController, RecordingState, validate_event_marker

__all__ = [
    "Diagnostic",
    "DiagnosticReporter",
    "EventBus",
    "Events",
    "RecordingController",
    "RecordingState",
    "Severity",
    "get_logger",
    "setup_logging",
    "validate_event_marker",
]
