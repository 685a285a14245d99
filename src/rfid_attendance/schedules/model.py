from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence


@dataclass(frozen=True)
class Subject:
    subject_id: str
    code: str
    name: str

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"


@dataclass(frozen=True)
class ScheduleSlot:
    """One class period on one weekday. subject_id=None marks an empty slot."""

    time_slot: str
    subject_id: Optional[str] = None


@dataclass(frozen=True)
class StudentSchedule:
    """Weekly schedule: lowercase weekday name -> slots, plus the subjects they reference."""

    student_id: str
    days: Mapping[str, Sequence[ScheduleSlot]] = field(default_factory=dict)
    subjects: Mapping[str, Subject] = field(default_factory=dict)

    def slots_for(self, day_of_week: str) -> Sequence[ScheduleSlot]:
        return self.days.get(day_of_week) or ()

