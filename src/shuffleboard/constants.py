"""
Namespace layout shared by the dashboard tree, the recording controller and
the recording writer.
"""

from shuffleboard.foundation.namespace import join_path

# Base table all dashboard data is published under
BASE_TABLE_NAME = "/Shuffleboard"

# Tree metadata: /Shuffleboard/.metadata/...
METADATA_TABLE = join_path(BASE_TABLE_NAME, ".metadata")
TABS_KEY = "Tabs"
SELECTED_KEY = "Selected"
ACTUATORS_ENABLED_KEY = "ActuatorsEnabled"

# Per-component metadata entries
PREFERRED_COMPONENT_KEY = "PreferredComponent"
SIZE_KEY = "Size"
POSITION_KEY = "Position"
PROPERTIES_TABLE_NAME = "Properties"
CONTROLLABLE_KEY = "Controllable"
TYPE_KEY = ".type"

TAB_TYPE_NAME = "ShuffleboardTab"
LAYOUT_TYPE_NAME = "ShuffleboardLayout"

# Recording control: /Shuffleboard/.recording/...
RECORDING_TABLE = join_path(BASE_TABLE_NAME, ".recording")
RECORD_DATA_KEY = "RecordData"
FILE_NAME_FORMAT_KEY = "FileNameFormat"
FILE_NAME_KEY = "FileName"
EVENTS_TABLE_NAME = "events"
EVENT_INFO_KEY = "Info"
EVENT_TIMESTAMP_KEY = "Timestamp"
