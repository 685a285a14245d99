import os


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": _int("DB_PORT", 3306),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "rfid_attendance"),
}

# IANA zone used to derive weekday/date/time from scan timestamps; empty = server local time.
TIMEZONE = os.getenv("TIMEZONE", "")

ABSENCE_THRESHOLD = _int("ABSENCE_THRESHOLD", 3)
ALERT_DEBOUNCE_MS = _int("ALERT_DEBOUNCE_MS", 2000)
ALERT_INTER_STUDENT_PAUSE_MS = _int("ALERT_INTER_STUDENT_PAUSE_MS", 100)
SCAN_POLL_INTERVAL_S = float(os.getenv("SCAN_POLL_INTERVAL_S", "5"))

EMAILJS_SERVICE_ID = os.getenv("EMAILJS_SERVICE_ID", "")
EMAILJS_TEMPLATE_ID = os.getenv("EMAILJS_TEMPLATE_ID", "")
EMAILJS_PUBLIC_KEY = os.getenv("EMAILJS_PUBLIC_KEY", "")
