"""Core module - dashboard tree, Sendable binding and recording files"""

from .components import ComplexWidget, ShuffleboardComponent, SimpleWidget, SuppliedValueWidget
from .containers import ShuffleboardContainer, ShuffleboardLayout, ShuffleboardTab
from .instance import ShuffleboardInstance
from .recording_writer import RecordingError, RecordingWriter
from .sendable import Sendable, SendableBuilder

__all__ = [
    "ComplexWidget",
    "RecordingError",
    "RecordingWriter",
    "Sendable",
    "SendableBuilder",
    "ShuffleboardComponent",
    "ShuffleboardContainer",
    "ShuffleboardInstance",
    "ShuffleboardLayout",
    "ShuffleboardTab",
    "SimpleWidget",
    "SuppliedValueWidget",
]
