"""
Shared Namespace - in-process hierarchical key-value store

The dashboard tree and the recording controller only ever talk to the
shared namespace through this module. Keys are slash-joined paths rooted at
"/", values are typed (bool, number, string, raw bytes and homogeneous
arrays of bool/number/string) and every effective change is announced to
listeners.

Key behaviors:
- Writing an identical value is a no-op (no notification)
- A key keeps the type of its first value; mismatched writes are rejected
- Listeners run after the store lock is released
- Listener errors are logged, never propagated to the writer
"""

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"


class EntryKind(Enum):
    """Kind of change reported to namespace listeners."""

    NEW = "new"
    UPDATE = "update"
    DELETE = "delete"


class ValueType(Enum):
    """Value types the namespace can hold."""

    BOOLEAN = "boolean"
    DOUBLE = "double"
    STRING = "string"
    RAW = "raw"
    BOOLEAN_ARRAY = "boolean[]"
    DOUBLE_ARRAY = "double[]"
    STRING_ARRAY = "string[]"


Listener = Callable[[str, Any, EntryKind], None]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def value_type_of(value: Any) -> ValueType | None:
    """Return the namespace type of a Python value, or None if unsupported."""
    if isinstance(value, bool):
        return ValueType.BOOLEAN
    if _is_number(value):
        return ValueType.DOUBLE
    if isinstance(value, str):
        return ValueType.STRING
    if isinstance(value, (bytes, bytearray)):
        return ValueType.RAW
    if isinstance(value, (list, tuple)):
        if all(isinstance(v, bool) for v in value):
            # An empty array is typed as boolean[] until it has content
            return ValueType.BOOLEAN_ARRAY
        if all(_is_number(v) for v in value):
            return ValueType.DOUBLE_ARRAY
        if all(isinstance(v, str) for v in value):
            return ValueType.STRING_ARRAY
    return None


def normalize_value(value: Any) -> Any:
    """Convert a supported value to its stored form (floats, tuples, bytes)."""
    value_type = value_type_of(value)
    if value_type is None:
        raise TypeError(f"Unsupported namespace value type: {type(value).__name__}")
    if value_type == ValueType.DOUBLE:
        return float(value)
    if value_type == ValueType.RAW:
        return bytes(value)
    if value_type == ValueType.DOUBLE_ARRAY:
        return tuple(float(v) for v in value)
    if value_type in (ValueType.BOOLEAN_ARRAY, ValueType.STRING_ARRAY):
        return tuple(value)
    return value


def join_path(base: str, *names: str) -> str:
    """
    Append names to a base path with the namespace separator.

    Names are used as-is, so an empty title yields an empty path segment.
    The result is always rooted at '/'.
    """
    path = base if base.startswith(PATH_SEPARATOR) else PATH_SEPARATOR + base
    for name in names:
        path = ("" if path == PATH_SEPARATOR else path) + PATH_SEPARATOR + name
    return path


@dataclass
class _Slot:
    value: Any
    value_type: ValueType
    persistent: bool = False


class EntryNamespace:
    """
    Thread-safe in-process implementation of the shared namespace.

    Usage:
        ns = EntryNamespace()
        handle = ns.add_listener(lambda key, value, kind: print(key, value))
        ns.set_value("/Shuffleboard/Example/My Boolean", True)
    """

    def __init__(self):
        self._slots: dict[str, _Slot] = {}
        self._lock = threading.RLock()
        self._listeners: dict[int, tuple[str, Listener]] = {}
        self._next_handle = 1
        self._stats = {"writes": 0, "rejected": 0, "deletes": 0}

    # ---- writes -------------------------------------------------------

    def set_value(self, key: str, value: Any) -> bool:
        """
        Write a value.

        Returns:
            True if the stored value changed, False for identical or
            type-mismatched writes
        """
        return self._write(key, value)

    def set_default(self, key: str, value: Any) -> bool:
        """Write a value only if the key is absent. Returns True if written."""
        return self._write(key, value, only_if_absent=True)

    def force_set_value(self, key: str, value: Any) -> bool:
        """Write a value, replacing the key's type if it differs."""
        return self._write(key, value, force=True)

    def publish_value(self, key: str, value: Any) -> bool:
        """
        Write a value and notify listeners even if it is unchanged.

        Used for one-shot notifications such as event markers, where a repeat
        of the same value is a new occurrence.
        """
        return self._write(key, value, notify_unchanged=True)

    def _write(
        self,
        key: str,
        value: Any,
        only_if_absent: bool = False,
        force: bool = False,
        notify_unchanged: bool = False,
    ) -> bool:
        stored = normalize_value(value)
        value_type = value_type_of(value)
        with self._lock:
            slot = self._slots.get(key)
            if slot is None:
                self._slots[key] = _Slot(stored, value_type)
                kind = EntryKind.NEW
            elif only_if_absent:
                return False
            elif not force and not self._compatible(slot, value_type, stored):
                self._stats["rejected"] += 1
                logger.debug(
                    f"Rejected write to {key}: {value_type.value} over {slot.value_type.value}"
                )
                return False
            elif slot.value == stored and slot.value_type == value_type and not notify_unchanged:
                return False
            else:
                slot.value = stored
                slot.value_type = value_type
                kind = EntryKind.UPDATE
            self._stats["writes"] += 1
        self._notify(key, stored, kind)
        return True

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        with self._lock:
            if self._slots.pop(key, None) is None:
                return False
            self._stats["deletes"] += 1
        self._notify(key, None, EntryKind.DELETE)
        return True

    def set_persistent(self, key: str, persistent: bool = True) -> None:
        """Flag a key to be kept across sessions by the remote store."""
        with self._lock:
            slot = self._slots.get(key)
            if slot is not None:
                slot.persistent = persistent

    @staticmethod
    def _compatible(slot: _Slot, incoming: ValueType, stored: Any) -> bool:
        if slot.value_type == incoming:
            return True
        # Empty arrays carry no element type
        array_types = (ValueType.BOOLEAN_ARRAY, ValueType.DOUBLE_ARRAY, ValueType.STRING_ARRAY)
        return (
            slot.value_type in array_types
            and incoming in array_types
            and (len(slot.value) == 0 or len(stored) == 0)
        )

    # ---- reads --------------------------------------------------------

    def get_value(self, key: str, default: Any = None) -> Any:
        with self._lock:
            slot = self._slots.get(key)
            return default if slot is None else slot.value

    def get_type(self, key: str) -> ValueType | None:
        with self._lock:
            slot = self._slots.get(key)
            return None if slot is None else slot.value_type

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._slots

    def is_persistent(self, key: str) -> bool:
        with self._lock:
            slot = self._slots.get(key)
            return slot is not None and slot.persistent

    def get_keys(self, prefix: str = "") -> list[str]:
        """All keys starting with prefix, sorted."""
        with self._lock:
            return sorted(k for k in self._slots if k.startswith(prefix))

    def snapshot(self, prefix: str = "") -> dict[str, Any]:
        """Copy of all values under prefix."""
        with self._lock:
            return {k: s.value for k, s in self._slots.items() if k.startswith(prefix)}

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._slots), **self._stats}

    # ---- listeners ----------------------------------------------------

    def add_listener(self, callback: Listener, prefix: str = "") -> int:
        """
        Register a change listener.

        Args:
            callback: Called as callback(key, value, kind)
            prefix: Only keys starting with this prefix are reported

        Returns:
            Handle for remove_listener()
        """
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._listeners[handle] = (prefix, callback)
        return handle

    def remove_listener(self, handle: int) -> None:
        with self._lock:
            self._listeners.pop(handle, None)

    def _notify(self, key: str, value: Any, kind: EntryKind) -> None:
        with self._lock:
            listeners = [cb for prefix, cb in self._listeners.values() if key.startswith(prefix)]
        for callback in listeners:
            try:
                callback(key, value, kind)
            except Exception as e:
                logger.error(f"Namespace listener failed for {key}: {e}", exc_info=True)

    # ---- views --------------------------------------------------------

    def get_table(self, path: str) -> "Table":
        return Table(self, join_path(path))

    def get_entry(self, key: str) -> "Entry":
        return Entry(self, key)


class Entry:
    """Handle on a single namespace key."""

    def __init__(self, namespace: EntryNamespace, key: str):
        self._namespace = namespace
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def name(self) -> str:
        return self._key.rsplit(PATH_SEPARATOR, 1)[-1]

    def get(self, default: Any = None) -> Any:
        return self._namespace.get_value(self._key, default)

    def set(self, value: Any) -> bool:
        return self._namespace.set_value(self._key, value)

    def force_set(self, value: Any) -> bool:
        return self._namespace.force_set_value(self._key, value)

    def publish(self, value: Any) -> bool:
        return self._namespace.publish_value(self._key, value)

    def set_default(self, value: Any) -> bool:
        return self._namespace.set_default(self._key, value)

    def delete(self) -> bool:
        return self._namespace.delete(self._key)

    def exists(self) -> bool:
        return self._namespace.contains(self._key)

    def set_persistent(self) -> None:
        self._namespace.set_persistent(self._key)

    def is_persistent(self) -> bool:
        return self._namespace.is_persistent(self._key)

    def __repr__(self) -> str:
        return f"Entry({self._key!r})"


class Table:
    """View of the namespace rooted at a path."""

    def __init__(self, namespace: EntryNamespace, path: str):
        self._namespace = namespace
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    @property
    def namespace(self) -> EntryNamespace:
        return self._namespace

    def get_entry(self, name: str) -> Entry:
        return Entry(self._namespace, join_path(self._path, name))

    def get_sub_table(self, name: str) -> "Table":
        return Table(self._namespace, join_path(self._path, name))

    def _relative_keys(self) -> list[str]:
        prefix = "" if self._path == PATH_SEPARATOR else self._path
        prefix += PATH_SEPARATOR
        return [k[len(prefix):] for k in self._namespace.get_keys(prefix)]

    def get_keys(self) -> list[str]:
        """Names of the direct entries of this table."""
        return sorted(k for k in self._relative_keys() if PATH_SEPARATOR not in k)

    def get_sub_tables(self) -> list[str]:
        """Names of the direct sub-tables of this table."""
        return sorted(
            {k.split(PATH_SEPARATOR, 1)[0] for k in self._relative_keys() if PATH_SEPARATOR in k}
        )

    def put_values(self, values: dict[str, Any] | Sequence[tuple[str, Any]]) -> None:
        items = values.items() if isinstance(values, dict) else values
        for name, value in items:
            self.get_entry(name).set(value)

    def __repr__(self) -> str:
        return f"Table({self._path!r})"
