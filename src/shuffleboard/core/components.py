"""
Dashboard components: the metadata-carrying nodes of the tree

Every component has a title unique among its siblings, an immutable parent
and metadata (preferred widget type, size, position, custom properties).
Metadata mutators return the component itself so configuration can be
chained:

    tab.add("Speed", 0.0).with_widget(BuiltInWidgets.NUMBER_BAR).with_size(2, 1)

Mutations only mark the component dirty; the next update() publishes them.
"""

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from shuffleboard.constants import (
    CONTROLLABLE_KEY,
    POSITION_KEY,
    PREFERRED_COMPONENT_KEY,
    PROPERTIES_TABLE_NAME,
    SIZE_KEY,
)
from shuffleboard.core.sendable import Sendable, SendableBuilder
from shuffleboard.foundation.namespace import (
    Entry,
    EntryNamespace,
    Table,
    ValueType,
    join_path,
    normalize_value,
    value_type_of,
)
from shuffleboard.models.enums import component_type_name

if TYPE_CHECKING:
    from shuffleboard.core.containers import ShuffleboardContainer, ShuffleboardTab

logger = logging.getLogger(__name__)


def check_value(value: Any) -> Any:
    """Return value if the namespace can hold it, else raise TypeError."""
    if value_type_of(value) is None:
        raise TypeError(
            f"Cannot add a value of type {type(value).__name__} to the dashboard; "
            "use bool, number, str, bytes, a homogeneous list of those, or a Sendable"
        )
    return value


def publish_properties(
    meta_table: Table, properties: Mapping[str, Any], published: set[str]
) -> set[str]:
    """
    Write properties under <meta_table>/Properties.

    Args:
        meta_table: Metadata table of the component or tab
        properties: Properties to publish
        published: Names written by the previous call; those no longer set are deleted

    Returns:
        Names now published
    """
    property_table = meta_table.get_sub_table(PROPERTIES_TABLE_NAME)
    for name in published - properties.keys():
        property_table.get_entry(name).delete()
    for name, value in properties.items():
        property_table.get_entry(name).force_set(value)
    return set(properties)


class ShuffleboardComponent:
    """Base class for widgets and layouts."""

    def __init__(
        self,
        parent: "ShuffleboardContainer",
        title: str,
        component_type: "str | Enum | None" = None,
        detached: bool = False,
    ):
        self._parent = parent
        self._title = title
        self._type = component_type_name(component_type)
        self._detached = detached
        self._properties: dict[str, Any] | None = None
        self._published_properties: set[str] = set()
        self._width = -1
        self._height = -1
        self._column = -1
        self._row = -1
        self._metadata_dirty = True

    @property
    def title(self) -> str:
        return self._title

    @property
    def parent(self) -> "ShuffleboardContainer":
        return self._parent

    @property
    def type(self) -> str | None:
        """Preferred widget/layout type shown by the dashboard, if any."""
        return self._type

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self._properties or {})

    @property
    def size(self) -> tuple[int, int] | None:
        return (self._width, self._height) if self._width > 0 and self._height > 0 else None

    @property
    def position(self) -> tuple[int, int] | None:
        return (self._column, self._row) if self._column >= 0 and self._row >= 0 else None

    @property
    def tab(self) -> "ShuffleboardTab":
        return self._parent.tab

    @property
    def lock(self):
        return self._parent.lock

    @property
    def path(self) -> str:
        """Full namespace path, e.g. /Shuffleboard/Example/My Boolean."""
        return join_path(self._parent.path, self._title)

    @property
    def is_detached(self) -> bool:
        """True if this component is not part of the published tree."""
        return self._detached or self._parent.is_detached

    @property
    def metadata_dirty(self) -> bool:
        return self._metadata_dirty

    def _namespace(self) -> EntryNamespace:
        root = self.tab.root
        return root.detached_namespace if self.is_detached else root.namespace

    def _set_type(self, component_type: "str | Enum | None") -> None:
        with self.lock:
            self._type = component_type_name(component_type)
            self._metadata_dirty = True

    def with_properties(self, properties: Mapping[str, Any]) -> "ShuffleboardComponent":
        """
        Set custom widget properties, e.g. {"min": 0, "max": 1}.

        Replaces any previously set properties.
        """
        for value in properties.values():
            check_value(value)
        with self.lock:
            self._properties = dict(properties)
            self._metadata_dirty = True
        return self

    def with_size(self, width: int, height: int) -> "ShuffleboardComponent":
        """Size in dashboard tiles."""
        with self.lock:
            self._width = width
            self._height = height
            self._metadata_dirty = True
        return self

    def with_position(self, column: int, row: int) -> "ShuffleboardComponent":
        """Tile position; (0, 0) is the top-left corner."""
        with self.lock:
            self._column = column
            self._row = row
            self._metadata_dirty = True
        return self

    def build_metadata(self, meta_table: Table) -> None:
        """Publish pending metadata. No writes if nothing changed."""
        if not self._metadata_dirty:
            return

        preferred = meta_table.get_entry(PREFERRED_COMPONENT_KEY)
        if self._type is None:
            preferred.delete()
        else:
            preferred.force_set(self._type)

        size = meta_table.get_entry(SIZE_KEY)
        if self.size is None:
            size.delete()
        else:
            size.set([float(v) for v in self.size])

        position = meta_table.get_entry(POSITION_KEY)
        if self.position is None:
            position.delete()
        else:
            position.set([float(v) for v in self.position])

        self._published_properties = publish_properties(
            meta_table, self._properties or {}, self._published_properties
        )

        self._metadata_dirty = False

    def build_into(self, parent_table: Table, meta_table: Table) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"


class ShuffleboardWidget(ShuffleboardComponent):
    """A component that displays data."""

    def with_widget(self, widget_type: "str | Enum") -> "ShuffleboardWidget":
        """Choose how the dashboard displays this data, e.g. BuiltInWidgets.TOGGLE_BUTTON."""
        self._set_type(widget_type)
        return self


class SimpleWidget(ShuffleboardWidget):
    """A widget bound to a single value entry."""

    def __init__(self, parent, title: str, value: Any, detached: bool = False):
        super().__init__(parent, title, detached=detached)
        self._value = normalize_value(check_value(value))
        self._value_dirty = False
        self._persistent = False
        self._entry: Entry | None = None

    @property
    def value(self) -> Any:
        """Last value set through this widget (the entry may hold a newer one)."""
        return self._value

    @property
    def is_bound(self) -> bool:
        return self._entry is not None

    def get_entry(self) -> Entry:
        """Entry holding this widget's value, bound on first access."""
        with self.lock:
            if self._entry is None:
                self._bind()
            return self._entry

    def set_value(self, value: Any) -> "SimpleWidget":
        """Replace the bound value; published on the next update()."""
        stored = normalize_value(check_value(value))
        with self.lock:
            self._value = stored
            self._value_dirty = self._entry is not None
        return self

    def set_persistent(self) -> "SimpleWidget":
        with self.lock:
            self._persistent = True
            if self._entry is not None:
                self._entry.set_persistent()
        return self

    def _bind(self) -> None:
        entry = self._namespace().get_entry(self.path)
        entry.set_default(self._value)
        if self._persistent:
            entry.set_persistent()
        self._entry = entry

    def build_into(self, parent_table: Table, meta_table: Table) -> None:
        self.build_metadata(meta_table)
        if self._entry is None:
            self._bind()
        elif self._value_dirty:
            self._entry.set(self._value)
            self._value_dirty = False


class ComplexWidget(ShuffleboardWidget):
    """A widget for a Sendable object with several properties."""

    def __init__(self, parent, title: str, sendable: Sendable, detached: bool = False):
        super().__init__(parent, title, detached=detached)
        self._sendable = sendable
        self._builder: SendableBuilder | None = None

    @property
    def sendable(self) -> Sendable:
        return self._sendable

    @property
    def builder(self) -> SendableBuilder | None:
        """None until the first update() initializes the sendable."""
        return self._builder

    def is_initialized(self) -> bool:
        return self._builder is not None

    def set_sendable(self, sendable: Sendable) -> "ComplexWidget":
        """Bind a different object; it is initialized on the next update()."""
        with self.lock:
            if sendable is self._sendable:
                return self
            if self._builder is not None:
                self._builder.stop_live_window_mode()
                self._builder = None
            self._sendable = sendable
        return self

    def enable_if_actuator(self) -> None:
        if self._builder is not None and self._builder.is_actuator():
            self._builder.start_live_window_mode()

    def disable_if_actuator(self) -> None:
        if self._builder is not None and self._builder.is_actuator():
            self._builder.stop_live_window_mode()

    def build_into(self, parent_table: Table, meta_table: Table) -> None:
        self.build_metadata(meta_table)
        if self._builder is None:
            builder = SendableBuilder(parent_table.get_sub_table(self.title))
            self._sendable.init_sendable(builder)
            if not builder.is_actuator():
                builder.start_listeners()
            elif self.tab.actuators_enabled:
                builder.start_live_window_mode()
            self._builder = builder
        self._builder.update_table()


class SuppliedValueWidget(ShuffleboardWidget):
    """A read-only widget whose value is pulled from a supplier on every update()."""

    def __init__(
        self,
        parent,
        title: str,
        supplier: Callable[[], Any],
        value_type: ValueType,
        detached: bool = False,
    ):
        super().__init__(parent, title, detached=detached)
        self._supplier = supplier
        self._value_type = value_type
        self._entry: Entry | None = None

    @property
    def value_type(self) -> ValueType:
        return self._value_type

    def set_supplier(self, supplier: Callable[[], Any]) -> "SuppliedValueWidget":
        with self.lock:
            self._supplier = supplier
        return self

    def build_metadata(self, meta_table: Table) -> None:
        dirty = self._metadata_dirty
        super().build_metadata(meta_table)
        if dirty:
            meta_table.get_entry(CONTROLLABLE_KEY).set(False)

    def build_into(self, parent_table: Table, meta_table: Table) -> None:
        self.build_metadata(meta_table)
        if self._entry is None:
            self._entry = parent_table.get_entry(self.title)
        value = self._supplier()
        if value_type_of(value) is None:
            raise TypeError(f"Supplier for {self.path} returned {type(value).__name__}")
        self._entry.set(value)
