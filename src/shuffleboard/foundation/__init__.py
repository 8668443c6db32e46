"""Foundation - shared namespace and its WebSocket mirror."""

from shuffleboard.foundation.broadcaster import NamespaceBroadcaster
from shuffleboard.foundation.namespace import Entry, EntryKind, EntryNamespace, Table, ValueType

__all__ = [
    "Entry",
    "EntryKind",
    "EntryNamespace",
    "NamespaceBroadcaster",
    "Table",
    "ValueType",
]
