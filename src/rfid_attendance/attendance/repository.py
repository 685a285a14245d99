from __future__ import annotations

from typing import Dict, Protocol, Sequence

from .model import DayAttendanceRecord


class AttendanceRepository(Protocol):
    def get_day(self, student_id: str, date_key: str) -> DayAttendanceRecord:
        """Return the class_key -> record map for one student-day (empty if none)."""

        raise NotImplementedError

    def put_day(self, student_id: str, date_key: str, day: DayAttendanceRecord) -> None:
        """Replace the whole day map. Callers pass the full merged map, never a partial one."""

        raise NotImplementedError

    def get_all_days(self, student_id: str) -> Dict[str, DayAttendanceRecord]:
        raise NotImplementedError

    def list_student_ids(self) -> Sequence[str]:
        """Students with any attendance history."""

        raise NotImplementedError
