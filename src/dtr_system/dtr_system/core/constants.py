"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DAILY_CAP_MINUTES = 300
LEGACY_SHIFT_SLOTS = 4
DEFAULT_OFFICE_LABEL = "Office Staff"
EMPTY_HISTORY_VALUE = "-"
FALLBACK_TIME = "00:00"

STATUS_EXCUSED = "Excused"
STATUS_ABSENT = "Absent"

MIN_YEAR = 2020
MAX_YEAR = 2100
