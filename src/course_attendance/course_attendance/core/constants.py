"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

ATTENDANCE_THRESHOLD = 75.0
DEFAULT_SESSION_COMPONENT = "default"
DEFAULT_WRITE_WORKERS = 4

ATTENDANCE_ENTRY_SETTING = "attendanceEntryEnabled"
