from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import (
    ABSENT_AFTER_START_MINUTES,
    GRACE_MINUTES_BEFORE_START,
    LATE_AFTER_START_MINUTES,
)
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class TimeWindowClassifier:
    """Classify a scan against a class start time.

    All values are minutes since local midnight. With S the class start:

    - present: S - grace <= scan <= S + late
    - late:    S + late < scan <= S + absent
    - absent:  anything else, including scans before the grace window
    """

    grace_minutes: int = GRACE_MINUTES_BEFORE_START
    late_minutes: int = LATE_AFTER_START_MINUTES
    absent_minutes: int = ABSENT_AFTER_START_MINUTES

    def grace_start(self, class_start: int) -> int:
        return class_start - self.grace_minutes

    def late_threshold(self, class_start: int) -> int:
        return class_start + self.late_minutes

    def absent_threshold(self, class_start: int) -> int:
        return class_start + self.absent_minutes

    def is_eligible(self, scan_minutes: int, class_start: int) -> bool:
        return self.grace_start(class_start) <= scan_minutes <= self.absent_threshold(class_start)

    def classify(self, scan_minutes: int, class_start: int, class_end: int) -> AttendanceStatus:
        # class_end only matters to the matcher's priority ranking.
        if self.grace_start(class_start) <= scan_minutes <= self.late_threshold(class_start):
            return AttendanceStatus.PRESENT
        if self.late_threshold(class_start) < scan_minutes <= self.absent_threshold(class_start):
            return AttendanceStatus.LATE
        return AttendanceStatus.ABSENT


def classify(scan_minutes: int, class_start: int, class_end: int) -> AttendanceStatus:
    return TimeWindowClassifier().classify(scan_minutes, class_start, class_end)
