from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Tuple

from ..attendance.model import DayAttendanceRecord
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AbsenceCount:
    count: int
    dates: Tuple[str, ...] = field(default_factory=tuple)


def count_absences(history: Mapping[str, DayAttendanceRecord]) -> AbsenceCount:
    """Count absences across a student's history.

    count is per absent class; dates lists each date once, however many
    classes were missed that day.
    """

    count = 0
    dates = []
    for date_key, day in history.items():
        missed = sum(1 for rec in day.values() if rec.status == AttendanceStatus.ABSENT)
        if missed:
            count += missed
            dates.append(date_key)
    return AbsenceCount(count=count, dates=tuple(sorted(dates)))
