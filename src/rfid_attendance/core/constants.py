"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

GRACE_MINUTES_BEFORE_START = 15
LATE_AFTER_START_MINUTES = 15
ABSENT_AFTER_START_MINUTES = 30

PRIORITY_LIVE = 3
PRIORITY_GRACE = 2
PRIORITY_LATE_WINDOW = 1
PRIORITY_OVERDUE = 0

DEFAULT_ABSENCE_THRESHOLD = 3
DEFAULT_ALERT_DEBOUNCE_MS = 2000
DEFAULT_INTER_STUDENT_PAUSE_MS = 100
DEFAULT_SCAN_POLL_INTERVAL_S = 5

GENERAL_CHECKIN_SUBJECT = "General Check-in"
GENERAL_CLASS_KEY_PREFIX = "general_"

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
