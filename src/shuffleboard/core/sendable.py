"""
Sendable objects and the builder that binds them to a namespace table

A Sendable describes itself once, in init_sendable(), by declaring typed
properties with a getter (pushed to the dashboard on every update) and an
optional setter (called when the dashboard writes the property).

Actuators (motors, relays, ...) only accept dashboard writes while live
window mode is on; leaving it runs the sendable's safe state.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from shuffleboard.constants import TYPE_KEY
from shuffleboard.foundation.namespace import Entry, EntryKind, Table, ValueType

logger = logging.getLogger(__name__)

ACTUATOR_KEY = ".actuator"


class Sendable(ABC):
    """An object that can publish itself as a complex dashboard widget."""

    @abstractmethod
    def init_sendable(self, builder: "SendableBuilder") -> None:
        """Declare the type and properties of this object."""


@dataclass
class _Property:
    entry: Entry
    value_type: ValueType
    getter: Callable[[], Any] | None
    setter: Callable[[Any], None] | None


class SendableBuilder:
    """
    Binds a Sendable's properties to a table.

    Usage:
        builder = SendableBuilder(table)
        sendable.init_sendable(builder)
        builder.start_listeners()
        builder.update_table()   # every dashboard update
    """

    def __init__(self, table: Table):
        self._table = table
        self._properties: dict[str, _Property] = {}
        self._actuator = False
        self._safe_state: Callable[[], None] | None = None
        self._update_table: Callable[[], None] | None = None
        self._listener_handle: int | None = None
        self._live_window = False
        # Values this builder wrote; echoes of them are not remote writes
        self._last_written: dict[str, Any] = {}
        self._lock = threading.RLock()

    @property
    def table(self) -> Table:
        return self._table

    # ---- declaration --------------------------------------------------

    def set_smart_dashboard_type(self, type_name: str) -> None:
        self._table.get_entry(TYPE_KEY).set(type_name)

    def set_actuator(self, value: bool) -> None:
        self._actuator = value
        self._table.get_entry(ACTUATOR_KEY).set(value)

    def is_actuator(self) -> bool:
        return self._actuator

    def set_safe_state(self, func: Callable[[], None]) -> None:
        self._safe_state = func

    def set_update_table(self, func: Callable[[], None]) -> None:
        self._update_table = func

    def add_property(
        self,
        key: str,
        value_type: ValueType,
        getter: Callable[[], Any] | None,
        setter: Callable[[Any], None] | None = None,
    ) -> None:
        with self._lock:
            self._properties[key] = _Property(self._table.get_entry(key), value_type, getter, setter)

    def add_boolean_property(self, key, getter, setter=None) -> None:
        self.add_property(key, ValueType.BOOLEAN, getter, setter)

    def add_double_property(self, key, getter, setter=None) -> None:
        self.add_property(key, ValueType.DOUBLE, getter, setter)

    def add_string_property(self, key, getter, setter=None) -> None:
        self.add_property(key, ValueType.STRING, getter, setter)

    def add_boolean_array_property(self, key, getter, setter=None) -> None:
        self.add_property(key, ValueType.BOOLEAN_ARRAY, getter, setter)

    def add_double_array_property(self, key, getter, setter=None) -> None:
        self.add_property(key, ValueType.DOUBLE_ARRAY, getter, setter)

    def add_string_array_property(self, key, getter, setter=None) -> None:
        self.add_property(key, ValueType.STRING_ARRAY, getter, setter)

    def add_raw_property(self, key, getter, setter=None) -> None:
        self.add_property(key, ValueType.RAW, getter, setter)

    # ---- publishing ---------------------------------------------------

    def update_table(self) -> None:
        """Push every property getter's current value."""
        with self._lock:
            properties = list(self._properties.items())
        for key, prop in properties:
            if prop.getter is None:
                continue
            value = prop.getter()
            if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
                value = tuple(value)
            if prop.value_type == ValueType.DOUBLE:
                value = float(value)
            self._last_written[key] = value
            prop.entry.set(value)
        if self._update_table is not None:
            self._update_table()

    # ---- remote control -----------------------------------------------

    def start_listeners(self) -> None:
        """Route dashboard writes of settable properties to their setters."""
        with self._lock:
            if self._listener_handle is not None:
                return
            prefix = self._table.path + "/"
            self._listener_handle = self._table.namespace.add_listener(self._on_change, prefix)

    def stop_listeners(self) -> None:
        with self._lock:
            if self._listener_handle is None:
                return
            self._table.namespace.remove_listener(self._listener_handle)
            self._listener_handle = None

    def is_listening(self) -> bool:
        return self._listener_handle is not None

    def start_live_window_mode(self) -> None:
        """Allow dashboard control, starting from the safe state."""
        self._live_window = True
        if self._safe_state is not None:
            self._safe_state()
        self.start_listeners()

    def stop_live_window_mode(self) -> None:
        """Stop dashboard control and return to the safe state."""
        self._live_window = False
        self.stop_listeners()
        if self._safe_state is not None:
            self._safe_state()

    def is_live_window(self) -> bool:
        return self._live_window

    def _on_change(self, key: str, value: Any, kind: EntryKind) -> None:
        if kind == EntryKind.DELETE:
            return
        name = key[len(self._table.path) + 1:]
        with self._lock:
            prop = self._properties.get(name)
        if prop is None or prop.setter is None:
            return
        if self._last_written.get(name) == value:
            return
        if self._actuator and not self._live_window:
            logger.debug(f"Ignoring write to actuator property {key} outside live window mode")
            return
        self._last_written[name] = value
        prop.setter(value)
