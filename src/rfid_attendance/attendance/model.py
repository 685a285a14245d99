from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ..core.enums import AttendanceStatus, ProcessBranch


@dataclass(frozen=True)
class ScanEvent:
    """A single RFID read attributed to a student (timestamp in epoch ms)."""

    student_id: str
    timestamp: int


@dataclass(frozen=True)
class ClassAttendanceRecord:
    """Domain entity: attendance for one class on one day."""

    status: AttendanceStatus
    time_in: str
    subject: str
    time_slot: str
    recorded_at: int
    time_out: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "timeIn": self.time_in,
            "timeOut": self.time_out,
            "subject": self.subject,
            "timeSlot": self.time_slot,
            "recordedAt": self.recorded_at,
        }


# class_key -> record, for one student and one date_key.
DayAttendanceRecord = Dict[str, ClassAttendanceRecord]


@dataclass(frozen=True)
class ProcessOutcome:
    branch: ProcessBranch
    student_id: str
    date_key: str
    class_key: str
    record: ClassAttendanceRecord

    @property
    def written(self) -> bool:
        return self.branch in (ProcessBranch.MATCHED, ProcessBranch.GENERAL)

    def to_dict(self) -> dict:
        return {
            "branch": self.branch.value,
            "studentId": self.student_id,
            "dateKey": self.date_key,
            "classKey": self.class_key,
            "record": self.record.to_dict(),
        }
