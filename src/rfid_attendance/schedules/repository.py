from __future__ import annotations

from typing import Optional, Protocol

from .model import StudentSchedule


class ScheduleRepository(Protocol):
    def get_schedule(self, student_id: str) -> Optional[StudentSchedule]:
        """Return the student's weekly schedule, or None when none was configured."""

        raise NotImplementedError
