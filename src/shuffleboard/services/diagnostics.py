"""
Diagnostics - operator-visible error reporting

Misuse of the dashboard API and namespace faults never raise into the
control loop. They are reported here instead: logged, kept in a bounded
history and published on the event bus for whoever shows them to the
operator.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from shuffleboard.services.event_bus import EventBus, Events

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """A single reported problem."""

    severity: Severity
    message: str
    source: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
        }


class DiagnosticReporter:
    """
    Collects diagnostics.

    Usage:
        reporter = DiagnosticReporter(event_bus)
        reporter.report_error("Shuffleboard event name was not specified", source="recording")
        reporter.error_count  # -> 1
    """

    def __init__(self, event_bus: EventBus | None = None, max_history: int = 200):
        self._event_bus = event_bus
        self._history: deque[Diagnostic] = deque(maxlen=max_history)
        self._lock = threading.Lock()
        self._counts = {Severity.WARNING: 0, Severity.ERROR: 0}

    def report_error(self, message: str, source: str = "") -> Diagnostic:
        return self._report(Severity.ERROR, message, source)

    def report_warning(self, message: str, source: str = "") -> Diagnostic:
        return self._report(Severity.WARNING, message, source)

    def _report(self, severity: Severity, message: str, source: str) -> Diagnostic:
        diagnostic = Diagnostic(severity=severity, message=message, source=source)
        with self._lock:
            self._history.append(diagnostic)
            self._counts[severity] += 1

        prefix = f"[{source}] " if source else ""
        if severity == Severity.ERROR:
            logger.error(f"{prefix}{message}")
        else:
            logger.warning(f"{prefix}{message}")

        if self._event_bus is not None:
            self._event_bus.publish(Events.DIAGNOSTIC, diagnostic.to_dict())
        return diagnostic

    @property
    def error_count(self) -> int:
        with self._lock:
            return self._counts[Severity.ERROR]

    @property
    def warning_count(self) -> int:
        with self._lock:
            return self._counts[Severity.WARNING]

    def history(self) -> list[Diagnostic]:
        with self._lock:
            return list(self._history)

    def clear(self) -> None:
        with self._lock:
            self._history.clear()
            self._counts = {Severity.WARNING: 0, Severity.ERROR: 0}
