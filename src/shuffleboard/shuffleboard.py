"""
Shuffleboard - caller-facing entry point

Bundles the dashboard tree root and the recording controller over one
shared namespace. Build one explicitly (tests do), or use the process-wide
default:

    shuffleboard.initialize()
    tab = shuffleboard.get_default().get_tab("Example")
    tab.add("My Boolean", True).with_widget(BuiltInWidgets.TOGGLE_BUTTON)
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from enum import Enum

from shuffleboard.core.containers import ShuffleboardContainer, ShuffleboardLayout, ShuffleboardTab
from shuffleboard.core.instance import ShuffleboardInstance
from shuffleboard.foundation.namespace import EntryNamespace
from shuffleboard.models.enums import EventImportance
from shuffleboard.models.recording_config import RecordingConfig
from shuffleboard.models.recording_models import EventMarker
from shuffleboard.services.diagnostics import DiagnosticReporter
from shuffleboard.services.event_bus import EventBus
from shuffleboard.services.recording_controller import RecordingController

logger = logging.getLogger(__name__)


class Shuffleboard:
    """
    The dashboard: tabs, layouts and widgets mirrored to the namespace,
    plus control of the dashboard's data recording.

    update() must be called periodically (typically from the robot loop)
    to publish changes.
    """

    def __init__(
        self,
        namespace: EntryNamespace | None = None,
        reporter: DiagnosticReporter | None = None,
        event_bus: EventBus | None = None,
        recording_config: RecordingConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.namespace = namespace if namespace is not None else EntryNamespace()
        self.event_bus = event_bus
        self.reporter = reporter or DiagnosticReporter(event_bus)
        self.root = ShuffleboardInstance(self.namespace, self.reporter, event_bus)
        self.recording = RecordingController(
            self.namespace, self.reporter, event_bus, recording_config, clock
        )

    # ---- tree ---------------------------------------------------------

    def get_tab(self, title: str) -> ShuffleboardTab:
        """Get the tab with this title, creating it if needed."""
        return self.root.get_tab(title)

    def get_layout(
        self, parent: ShuffleboardContainer, layout_type: "str | Enum | None", title: str
    ) -> ShuffleboardLayout:
        return self.root.get_layout(parent, layout_type, title)

    def update(self) -> None:
        """Publish pending changes; call once per control loop iteration."""
        self.root.update()

    def enable_actuator_widgets(self) -> None:
        self.root.enable_actuator_widgets()

    def disable_actuator_widgets(self) -> None:
        self.root.disable_actuator_widgets()

    def select_tab(self, tab: int | str) -> None:
        self.root.select_tab(tab)

    # ---- recording ----------------------------------------------------

    def start_recording(self) -> None:
        self.recording.start_recording()

    def stop_recording(self) -> None:
        self.recording.stop_recording()

    def set_recording_file_name_format(self, file_name_format: str | None) -> None:
        """
        Set the file name template for new recordings.

        ${date} and ${time} are replaced by the session's start date and
        date+time.
        """
        self.recording.set_recording_file_name_format(file_name_format)

    def clear_recording_file_name_format(self) -> None:
        self.recording.clear_recording_file_name_format()

    def add_event_marker(
        self,
        name: str | None,
        description: "str | EventImportance | None" = "",
        importance: EventImportance | None = None,
    ) -> EventMarker | None:
        """Notify the dashboard of an event; recorded if a recording is running."""
        return self.recording.add_event_marker(name, description, importance)


_default: Shuffleboard | None = None
_default_lock = threading.Lock()


def initialize(**kwargs) -> Shuffleboard:
    """Create the process-wide default dashboard, replacing any previous one."""
    global _default
    with _default_lock:
        _default = Shuffleboard(**kwargs)
        logger.debug("Default Shuffleboard initialized")
        return _default


def get_default() -> Shuffleboard:
    """The process-wide default dashboard, created on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Shuffleboard()
        return _default
