from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Per-class attendance status as stored in the database."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class ProcessBranch(str, Enum):
    """Which terminal branch a scan took through the processor."""

    MATCHED = "matched"
    DUPLICATE = "duplicate"
    GENERAL = "general"
    GENERAL_DUPLICATE = "general_duplicate"


class AlertState(str, Enum):
    """Lifecycle of a student inside the absence alert pipeline."""

    IDLE = "idle"
    QUEUED = "queued"
    PROCESSING = "processing"
