"""
Enumerations for dashboard widgets, layouts and event importance
"""

from enum import Enum, IntEnum


class EventImportance(IntEnum):
    """Importance of an event marker, ordered from trivial to critical."""

    TRIVIAL = 0
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def simple_name(self) -> str:
        """Name the remote client expects in event records."""
        return self.name

    @classmethod
    def from_name(cls, name: str) -> "EventImportance":
        return cls[name.strip().upper()]


class BuiltInWidgets(str, Enum):
    """Widget types known to the dashboard client."""

    TEXT_VIEW = "Text View"
    NUMBER_SLIDER = "Number Slider"
    NUMBER_BAR = "Number Bar"
    SIMPLE_DIAL = "Simple Dial"
    GRAPH = "Graph"
    BOOLEAN_BOX = "Boolean Box"
    TOGGLE_BUTTON = "Toggle Button"
    TOGGLE_SWITCH = "Toggle Switch"
    VOLTAGE_VIEW = "Voltage View"
    POWER_DISTRIBUTION_PANEL = "PDP"
    COMBO_BOX_CHOOSER = "ComboBox Chooser"
    SPLIT_BUTTON_CHOOSER = "Split Button Chooser"
    ENCODER = "Encoder"
    SPEED_CONTROLLER = "Speed Controller"
    COMMAND = "Command"
    PID_COMMAND = "PID Command"
    PID_CONTROLLER = "PID Controller"
    ACCELEROMETER = "Accelerometer"
    THREE_AXIS_ACCELEROMETER = "3-Axis Accelerometer"
    GYRO = "Gyro"
    RELAY = "Relay"
    DIFFERENTIAL_DRIVE = "Differential Drivebase"
    MECANUM_DRIVE = "Mecanum Drivebase"
    CAMERA_STREAM = "Camera Stream"


class BuiltInLayouts(str, Enum):
    """Layout types known to the dashboard client."""

    LIST = "List Layout"
    GRID = "Grid Layout"


def component_type_name(value: "str | Enum | None") -> str | None:
    """Resolve a widget/layout type argument (enum member or string) to its name."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
