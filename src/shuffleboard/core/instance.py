"""
ShuffleboardInstance - root of the dashboard tree

Owns the ordered tab registry and the tree lock, and mirrors the tree into
the shared namespace on every update() pass:

    /Shuffleboard/.metadata/Tabs               tab titles, creation order
    /Shuffleboard/.metadata/<tab>/<...>/<title> component metadata
    /Shuffleboard/<tab>/<...>/<title>          widget values
    /Shuffleboard/<tab>/.type                  "ShuffleboardTab"

Namespace faults during a pass become diagnostics. The failing tab or
component stays dirty and is retried on the next pass; each failing path is
reported once until it succeeds again.
"""

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from shuffleboard.constants import (
    ACTUATORS_ENABLED_KEY,
    BASE_TABLE_NAME,
    METADATA_TABLE,
    SELECTED_KEY,
    TABS_KEY,
)
from shuffleboard.core.components import ComplexWidget
from shuffleboard.core.containers import ShuffleboardContainer, ShuffleboardLayout, ShuffleboardTab
from shuffleboard.foundation.namespace import EntryNamespace
from shuffleboard.services.diagnostics import DiagnosticReporter
from shuffleboard.services.event_bus import EventBus, Events

logger = logging.getLogger(__name__)

SOURCE = "update"


class ShuffleboardInstance:
    """
    Dashboard tree root.

    Usage:
        root = ShuffleboardInstance(namespace, reporter)
        root.get_tab("Example").add("My Boolean", True)
        root.update()   # from the periodic control loop
    """

    def __init__(
        self,
        namespace: EntryNamespace,
        reporter: DiagnosticReporter | None = None,
        event_bus: EventBus | None = None,
    ):
        self._namespace = namespace
        self._event_bus = event_bus
        self._reporter = reporter or DiagnosticReporter(event_bus)
        self._root_table = namespace.get_table(BASE_TABLE_NAME)
        self._meta_table = namespace.get_table(METADATA_TABLE)
        # Components that lost a title conflict write here instead of the dashboard
        self._detached_namespace = EntryNamespace()

        self._lock = threading.RLock()
        self._tabs: dict[str, ShuffleboardTab] = {}
        self._tabs_changed = False
        self._actuators_enabled = False
        self._faulted: set[str] = set()

    @property
    def namespace(self) -> EntryNamespace:
        return self._namespace

    @property
    def detached_namespace(self) -> EntryNamespace:
        """Private store for detached components; never published."""
        return self._detached_namespace

    @property
    def reporter(self) -> DiagnosticReporter:
        return self._reporter

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def actuators_enabled(self) -> bool:
        return self._actuators_enabled

    def get_tab(self, title: str) -> ShuffleboardTab:
        """Get the tab with this title, creating it if needed."""
        with self._lock:
            tab = self._tabs.get(title)
            if tab is not None:
                return tab
            tab = ShuffleboardTab(self, title)
            tab.actuators_enabled = self._actuators_enabled
            self._tabs[title] = tab
            self._tabs_changed = True

        logger.debug(f"Created tab {title!r}")
        self.publish(Events.TAB_CREATED, {"title": title})
        return tab

    def get_tabs(self) -> list[ShuffleboardTab]:
        with self._lock:
            return list(self._tabs.values())

    def get_layout(
        self, parent: ShuffleboardContainer, layout_type: "str | Enum | None", title: str
    ) -> ShuffleboardLayout:
        """Get or create a layout under a tab or layout (first type wins)."""
        return parent.get_layout(title, layout_type)

    def update(self) -> None:
        """Publish every pending change of the tree to the namespace."""
        with self._lock:
            if self._tabs_changed:
                titles = list(self._tabs)
                key = self._meta_table.get_entry(TABS_KEY)
                if self.run_guarded(key.key, lambda: key.force_set(titles)):
                    self._tabs_changed = False

            for tab in self._tabs.values():
                self.run_guarded(
                    tab.path,
                    lambda t=tab: t.build_into(
                        self._root_table, self._meta_table.get_sub_table(t.title)
                    ),
                )

    def enable_actuator_widgets(self) -> None:
        """Let the dashboard control actuators (motors, relays, ...)."""
        self._set_actuators_enabled(True)

    def disable_actuator_widgets(self) -> None:
        """Stop dashboard control of actuators and put them in their safe state."""
        # Initialize every widget first so none misses the switch
        self.update()
        self._set_actuators_enabled(False)

    def _set_actuators_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._actuators_enabled = enabled
            key = self._meta_table.get_entry(ACTUATORS_ENABLED_KEY)
            self.run_guarded(key.key, lambda: key.set(enabled), source="actuators")
            for tab in self._tabs.values():
                tab.actuators_enabled = enabled
                for component in tab.walk():
                    if not isinstance(component, ComplexWidget):
                        continue
                    switch = component.enable_if_actuator if enabled else component.disable_if_actuator
                    self.run_guarded(component.path, switch, source="actuators")

        logger.info(f"Actuator widgets {'enabled' if enabled else 'disabled'}")
        self.publish(Events.ACTUATORS_ENABLED if enabled else Events.ACTUATORS_DISABLED, None)

    def select_tab(self, tab: int | str) -> None:
        """Ask the dashboard to show a tab, by index or by title."""
        if isinstance(tab, bool) or not isinstance(tab, (int, str)):
            raise TypeError(f"Tab must be selected by index or title, not {type(tab).__name__}")
        key = self._meta_table.get_entry(SELECTED_KEY)
        with self._lock:
            self.run_guarded(key.key, lambda: key.force_set(tab), source="select_tab")

    def run_guarded(self, path: str, operation: Callable[[], Any], source: str = SOURCE) -> bool:
        """
        Run a namespace operation for path, turning faults into diagnostics.

        Returns:
            True if the operation completed
        """
        try:
            operation()
        except Exception as e:
            if path not in self._faulted:
                self._faulted.add(path)
                self._reporter.report_error(f"Failed to publish {path}: {e}", source=source)
            else:
                logger.debug(f"Still failing to publish {path}: {e}")
            return False
        self._faulted.discard(path)
        return True

    def publish(self, event: Events, data: Any) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event, data)
