from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from rfid_attendance.alerts.model import AbsenceAlert, ParentAlert
from rfid_attendance.attendance.model import DayAttendanceRecord
from rfid_attendance.scans.model import ScannedId
from rfid_attendance.schedules.model import ScheduleSlot, StudentSchedule, Subject
from rfid_attendance.students.model import Student


def utc_ms(year: int, month: int, day: int, hour: int, minute: int) -> int:
    return int(datetime(year, month, day, hour, minute, tzinfo=timezone.utc).timestamp() * 1000)


class InMemorySchedules:
    def __init__(self, schedules: Optional[Dict[str, StudentSchedule]] = None):
        self.schedules = dict(schedules or {})

    def get_schedule(self, student_id: str) -> Optional[StudentSchedule]:
        return self.schedules.get(student_id)


class InMemoryAttendance:
    def __init__(self):
        self.days: Dict[Tuple[str, str], DayAttendanceRecord] = {}
        self.put_calls = 0

    def get_day(self, student_id: str, date_key: str) -> DayAttendanceRecord:
        return dict(self.days.get((student_id, date_key), {}))

    def put_day(self, student_id: str, date_key: str, day: DayAttendanceRecord) -> None:
        self.put_calls += 1
        self.days[(student_id, date_key)] = dict(day)

    def get_all_days(self, student_id: str) -> Dict[str, DayAttendanceRecord]:
        return {d: dict(day) for (sid, d), day in sorted(self.days.items()) if sid == student_id}

    def list_student_ids(self) -> List[str]:
        return sorted({sid for sid, _ in self.days})


class InMemoryStudents:
    def __init__(self, *students: Student):
        self.by_id = {s.student_id: s for s in students}

    def get_by_id(self, student_id: str) -> Optional[Student]:
        return self.by_id.get(student_id)

    def get_by_rfid(self, rfid: str) -> Optional[Student]:
        return next((s for s in self.by_id.values() if s.rfid == rfid), None)


class InMemoryScans:
    def __init__(self, *scans: ScannedId):
        self.scans = {s.rfid: s for s in scans}
        self.marked: List[str] = []

    def list_unprocessed(self) -> List[ScannedId]:
        pending = [s for s in self.scans.values() if not s.processed]
        return sorted(pending, key=lambda s: s.timestamp)

    def mark_processed(self, rfid: str) -> None:
        self.marked.append(rfid)
        scan = self.scans.get(rfid)
        if scan:
            self.scans[rfid] = ScannedId(rfid=rfid, timestamp=scan.timestamp, processed=True)


class InMemoryAlerts:
    def __init__(self):
        self.by_student: Dict[str, List[AbsenceAlert]] = {}

    def get_alerts(self, student_id: str) -> List[AbsenceAlert]:
        return list(self.by_student.get(student_id, []))

    def append_alert(self, student_id: str, alert: AbsenceAlert) -> None:
        self.by_student.setdefault(student_id, []).append(alert)


class RecordingSender:
    def __init__(self, *results: bool):
        self.results = list(results)
        self.sent: List[ParentAlert] = []

    def send_absence_alert(self, alert: ParentAlert) -> bool:
        self.sent.append(alert)
        return self.results.pop(0) if self.results else True


CS101 = Subject(subject_id="subj-cs101", code="CS101", name="Intro to Programming")
MATH1 = Subject(subject_id="subj-math1", code="MATH1", name="College Algebra")


@pytest.fixture
def student() -> Student:
    return Student(
        student_id="S-001",
        name="Ana Cruz",
        parent_name="Maria Cruz",
        parent_email="maria@example.com",
        rfid="RFID-001",
    )


@pytest.fixture
def monday_schedule() -> StudentSchedule:
    return StudentSchedule(
        student_id="S-001",
        days={"monday": [ScheduleSlot(time_slot="08:00-09:00", subject_id=CS101.subject_id)]},
        subjects={CS101.subject_id: CS101},
    )


@pytest.fixture
def schedules(monday_schedule) -> InMemorySchedules:
    return InMemorySchedules({"S-001": monday_schedule})


@pytest.fixture
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def students(student) -> InMemoryStudents:
    return InMemoryStudents(student)


@pytest.fixture
def scans() -> InMemoryScans:
    return InMemoryScans()


@pytest.fixture
def alerts() -> InMemoryAlerts:
    return InMemoryAlerts()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()
