"""
Containers: tabs and layouts

A container owns an ordered set of uniquely titled children. Adding a title
that already exists returns the existing child when it is the same kind of
component; reusing a title for a different kind is reported as a diagnostic
and yields a detached component that is never published.
"""

import logging
from collections.abc import Callable, Iterator
from enum import Enum
from typing import TYPE_CHECKING, Any

from shuffleboard.constants import BASE_TABLE_NAME, LAYOUT_TYPE_NAME, TAB_TYPE_NAME, TYPE_KEY
from shuffleboard.core.components import (
    ComplexWidget,
    ShuffleboardComponent,
    SimpleWidget,
    SuppliedValueWidget,
    check_value,
    publish_properties,
)
from shuffleboard.core.sendable import Sendable
from shuffleboard.foundation.namespace import Table, ValueType, join_path
from shuffleboard.models.enums import component_type_name
from shuffleboard.services.event_bus import Events

if TYPE_CHECKING:
    from shuffleboard.core.instance import ShuffleboardInstance

logger = logging.getLogger(__name__)


class ShuffleboardContainer:
    """Child registry shared by tabs and layouts."""

    def _init_container(self) -> None:
        self._components: dict[str, ShuffleboardComponent] = {}

    # Provided by the concrete class
    path: str
    tab: "ShuffleboardTab"
    lock: Any
    is_detached: bool

    def get_components(self) -> list[ShuffleboardComponent]:
        """Direct children in insertion order."""
        with self.lock:
            return list(self._components.values())

    def get_component(self, title: str) -> ShuffleboardComponent | None:
        with self.lock:
            return self._components.get(title)

    def walk(self) -> Iterator[ShuffleboardComponent]:
        """All descendants, depth first."""
        for component in self.get_components():
            yield component
            if isinstance(component, ShuffleboardContainer):
                yield from component.walk()

    def get_layout(
        self, title: str, layout_type: "str | Enum | None" = None
    ) -> "ShuffleboardLayout":
        """
        Get or create a layout.

        The type is fixed when the layout is first created; asking again
        with a different type logs a warning and keeps the original.
        """
        with self.lock:
            existing = self._components.get(title)
            if isinstance(existing, ShuffleboardLayout):
                requested = component_type_name(layout_type)
                if requested is not None and requested != existing.layout_type:
                    logger.warning(
                        f"Layout {existing.path} already has type {existing.layout_type!r}, "
                        f"ignoring {requested!r}"
                    )
                return existing
            if existing is not None:
                return self._conflict(
                    existing, "layout", lambda: ShuffleboardLayout(self, title, layout_type, True)
                )

            layout = ShuffleboardLayout(self, title, layout_type)
            self._components[title] = layout

        if not layout.is_detached:
            self.tab.root.publish(
                Events.LAYOUT_CREATED, {"path": layout.path, "type": layout.layout_type}
            )
        return layout

    def add(self, title: str, value: Any) -> "SimpleWidget | ComplexWidget":
        """
        Add a widget for a value or a Sendable.

        Adding an existing title again returns the same widget with its
        value (or Sendable) replaced; metadata is left untouched.

        Raises:
            TypeError: If value is neither a supported value nor a Sendable
        """
        if isinstance(value, Sendable):
            return self._add_complex(title, value)
        check_value(value)
        with self.lock:
            existing = self._components.get(title)
            if existing is None:
                widget = SimpleWidget(self, title, value)
                self._components[title] = widget
                return widget
            if isinstance(existing, SimpleWidget):
                return existing.set_value(value)
            return self._conflict(
                existing, "value widget", lambda: SimpleWidget(self, title, value, True)
            )

    def add_persistent(self, title: str, value: Any) -> "SimpleWidget":
        """Like add(), but the value is kept by the remote store across sessions."""
        widget = self.add(title, value)
        if not isinstance(widget, SimpleWidget):
            raise TypeError("add_persistent() does not accept Sendable objects")
        return widget.set_persistent()

    def _add_complex(self, title: str, sendable: Sendable) -> ComplexWidget:
        with self.lock:
            existing = self._components.get(title)
            if existing is None:
                widget = ComplexWidget(self, title, sendable)
                self._components[title] = widget
                return widget
            if isinstance(existing, ComplexWidget):
                return existing.set_sendable(sendable)
            return self._conflict(
                existing, "sendable widget", lambda: ComplexWidget(self, title, sendable, True)
            )

    def _add_supplied(
        self, title: str, supplier: Callable[[], Any], value_type: ValueType
    ) -> SuppliedValueWidget:
        if not callable(supplier):
            raise TypeError(f"Supplier for {title!r} must be callable")
        with self.lock:
            existing = self._components.get(title)
            if existing is None:
                widget = SuppliedValueWidget(self, title, supplier, value_type)
                self._components[title] = widget
                return widget
            if isinstance(existing, SuppliedValueWidget) and existing.value_type == value_type:
                return existing.set_supplier(supplier)
            return self._conflict(
                existing,
                f"{value_type.value} supplier",
                lambda: SuppliedValueWidget(self, title, supplier, value_type, True),
            )

    def add_string(self, title: str, supplier: Callable[[], str]) -> SuppliedValueWidget:
        return self._add_supplied(title, supplier, ValueType.STRING)

    def add_number(self, title: str, supplier: Callable[[], float]) -> SuppliedValueWidget:
        return self._add_supplied(title, supplier, ValueType.DOUBLE)

    def add_boolean(self, title: str, supplier: Callable[[], bool]) -> SuppliedValueWidget:
        return self._add_supplied(title, supplier, ValueType.BOOLEAN)

    def add_string_array(self, title: str, supplier: Callable[[], list[str]]) -> SuppliedValueWidget:
        return self._add_supplied(title, supplier, ValueType.STRING_ARRAY)

    def add_number_array(self, title: str, supplier: Callable[[], list[float]]) -> SuppliedValueWidget:
        return self._add_supplied(title, supplier, ValueType.DOUBLE_ARRAY)

    def add_boolean_array(self, title: str, supplier: Callable[[], list[bool]]) -> SuppliedValueWidget:
        return self._add_supplied(title, supplier, ValueType.BOOLEAN_ARRAY)

    def add_raw(self, title: str, supplier: Callable[[], bytes]) -> SuppliedValueWidget:
        return self._add_supplied(title, supplier, ValueType.RAW)

    def _conflict(
        self,
        existing: ShuffleboardComponent,
        requested: str,
        make_detached: Callable[[], ShuffleboardComponent],
    ):
        self.tab.root.reporter.report_error(
            f"Title {existing.title!r} in {self.path} is already used by a "
            f"{type(existing).__name__}; the new {requested} will not be shown",
            source="tree",
        )
        return make_detached()

    def _build_components(self, table: Table, meta_table: Table) -> None:
        """Build every child; a failing child does not stop its siblings."""
        root = self.tab.root
        for component in self.get_components():
            root.run_guarded(
                component.path,
                lambda c=component: c.build_into(table, meta_table.get_sub_table(c.title)),
            )


class ShuffleboardTab(ShuffleboardContainer):
    """A top-level dashboard tab."""

    def __init__(self, root: "ShuffleboardInstance", title: str):
        self._init_container()
        self._root = root
        self._title = title
        self._properties: dict[str, Any] = {}
        self._published_properties: set[str] = set()
        self._properties_dirty = False
        self.actuators_enabled = False

    @property
    def title(self) -> str:
        return self._title

    @property
    def root(self) -> "ShuffleboardInstance":
        return self._root

    @property
    def tab(self) -> "ShuffleboardTab":
        return self

    @property
    def lock(self):
        return self._root.lock

    @property
    def path(self) -> str:
        return join_path(BASE_TABLE_NAME, self._title)

    @property
    def is_detached(self) -> bool:
        return False

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self._properties)

    def with_properties(self, properties: dict[str, Any]) -> "ShuffleboardTab":
        """Tab-level properties, e.g. {"Layout": "Grid"}."""
        for value in properties.values():
            check_value(value)
        with self.lock:
            self._properties = dict(properties)
            self._properties_dirty = True
        return self

    def build_into(self, root_table: Table, meta_table: Table) -> None:
        table = root_table.get_sub_table(self._title)
        table.get_entry(TYPE_KEY).set(TAB_TYPE_NAME)
        if self._properties_dirty:
            self._published_properties = publish_properties(
                meta_table, self._properties, self._published_properties
            )
            self._properties_dirty = False
        self._build_components(table, meta_table)

    def __repr__(self) -> str:
        return f"ShuffleboardTab({self._title!r})"


class ShuffleboardLayout(ShuffleboardComponent, ShuffleboardContainer):
    """A titled group of components inside a tab or another layout."""

    def __init__(
        self,
        parent: ShuffleboardContainer,
        title: str,
        layout_type: "str | Enum | None" = None,
        detached: bool = False,
    ):
        ShuffleboardComponent.__init__(self, parent, title, layout_type, detached=detached)
        self._init_container()

    @property
    def layout_type(self) -> str | None:
        return self.type

    def build_into(self, parent_table: Table, meta_table: Table) -> None:
        self.build_metadata(meta_table)
        table = parent_table.get_sub_table(self.title)
        table.get_entry(TYPE_KEY).set(LAYOUT_TYPE_NAME)
        self._build_components(table, meta_table)
