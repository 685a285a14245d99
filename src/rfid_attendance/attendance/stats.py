from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Mapping

from ..core.enums import AttendanceStatus
from .model import DayAttendanceRecord


@dataclass(frozen=True)
class AttendanceSummary:
    total_classes: int
    present: int
    late: int
    absent: int
    days_attended: int
    attendance_rate: int
    late_rate: int

    def to_dict(self) -> dict:
        return asdict(self)


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return int(math.floor(part * 100 / whole + 0.5))


def summarize(history: Mapping[str, DayAttendanceRecord]) -> AttendanceSummary:
    """Roll a student's date_key -> day map into counts and rounded rates.

    Late counts as attended; a day counts as attended when any class was.
    """

    present = late = absent = 0
    days_attended = 0
    for day in history.values():
        attended_today = False
        for rec in day.values():
            if rec.status == AttendanceStatus.PRESENT:
                present += 1
                attended_today = True
            elif rec.status == AttendanceStatus.LATE:
                late += 1
                attended_today = True
            else:
                absent += 1
        if attended_today:
            days_attended += 1

    total = present + late + absent
    return AttendanceSummary(
        total_classes=total,
        present=present,
        late=late,
        absent=absent,
        days_attended=days_attended,
        attendance_rate=_percent(present + late, total),
        late_rate=_percent(late, total),
    )
