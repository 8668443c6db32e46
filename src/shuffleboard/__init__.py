"""Dashboard layout tree and recording control over a shared key-value namespace."""

from shuffleboard.core.containers import ShuffleboardLayout, ShuffleboardTab
from shuffleboard.core.sendable import Sendable, SendableBuilder
from shuffleboard.foundation.namespace import EntryNamespace
from shuffleboard.models.enums import BuiltInLayouts, BuiltInWidgets, EventImportance
from shuffleboard.shuffleboard import Shuffleboard, get_default, initialize

__version__ = "1.0.0"

__all__ = [
    "BuiltInLayouts",
    "BuiltInWidgets",
    "EntryNamespace",
    "EventImportance",
    "Sendable",
    "SendableBuilder",
    "Shuffleboard",
    "ShuffleboardLayout",
    "ShuffleboardTab",
    "get_default",
    "initialize",
]
