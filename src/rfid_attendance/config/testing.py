import os

from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
START_SCAN_POLLER = False
ALERT_INTER_STUDENT_PAUSE_MS = 0
