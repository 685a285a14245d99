from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Callable, Optional

from ..common.datetime_utils import ScanMoment, scan_moment, slot_start_minutes
from ..common.validators import require_non_empty, require_timestamp
from ..core.constants import GENERAL_CHECKIN_SUBJECT, GENERAL_CLASS_KEY_PREFIX
from ..core.enums import AttendanceStatus, ProcessBranch
from ..scans.repository import ScanRepository
from ..schedules.matcher import ScheduleMatcher
from ..schedules.repository import ScheduleRepository
from ..students.repository import StudentRepository
from .locks import KeyedLock
from .model import ClassAttendanceRecord, ProcessOutcome, ScanEvent
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

AbsenceCheck = Callable[[str], object]


class AttendanceProcessor:
    """Turn one RFID scan into at most one per-class attendance record.

    The day map is read, merged and written back whole while holding a
    per-(student, date) lock, so two scans for the same class on the same
    day can never both write.
    """

    def __init__(
        self,
        schedules: ScheduleRepository,
        attendance: AttendanceRepository,
        students: StudentRepository,
        scans: ScanRepository,
        *,
        matcher: ScheduleMatcher | None = None,
        absence_check: AbsenceCheck | None = None,
        tz: tzinfo | None = None,
        locks: KeyedLock | None = None,
    ):
        self._schedules = schedules
        self._attendance = attendance
        self._students = students
        self._scans = scans
        self._matcher = matcher or ScheduleMatcher()
        self._absence_check = absence_check
        self._tz = tz
        self._locks = locks or KeyedLock()

    def process(self, student_id: str, scan_timestamp: int, *, rfid: Optional[str] = None) -> ProcessOutcome:
        student_id = require_non_empty(student_id, "studentId")
        scan_timestamp = require_timestamp(scan_timestamp)
        moment = scan_moment(scan_timestamp, self._tz)

        logger.debug(
            "Processing scan student=%s day=%s time=%s date=%s",
            student_id,
            moment.day_of_week,
            moment.local_time,
            moment.date_key,
        )

        with self._locks.hold((student_id, moment.date_key)):
            outcome = self._record(student_id, scan_timestamp, moment)

        if outcome.branch == ProcessBranch.MATCHED and outcome.record.status == AttendanceStatus.ABSENT:
            self._recount_absences(student_id)

        self._mark_processed(student_id, rfid)
        return outcome

    def handle(self, event: ScanEvent, *, rfid: Optional[str] = None) -> ProcessOutcome:
        return self.process(event.student_id, event.timestamp, rfid=rfid)

    def _record(self, student_id: str, scan_timestamp: int, moment: ScanMoment) -> ProcessOutcome:
        schedule = self._schedules.get_schedule(student_id)
        if schedule is None:
            logger.info("No schedule for student %s; recording general check-in", student_id)
            return self._general_checkin(student_id, scan_timestamp, moment)

        slots = schedule.slots_for(moment.day_of_week)
        if not slots:
            logger.info("No classes on %s for student %s; recording general check-in", moment.day_of_week, student_id)
            return self._general_checkin(student_id, scan_timestamp, moment)

        existing = self._attendance.get_day(student_id, moment.date_key)

        ordered = sorted(slots, key=lambda s: slot_start_minutes(s.time_slot))
        match = self._matcher.find_best_match(moment.minutes, ordered, schedule.subjects)
        if match is None:
            logger.info("Scan at %s matches no class for student %s; recording general check-in", moment.local_time, student_id)
            return self._general_checkin(student_id, scan_timestamp, moment, existing=existing)

        class_key = match.class_key
        if class_key in existing:
            logger.info("Attendance for %s already recorded on %s; ignoring scan", class_key, moment.date_key)
            return ProcessOutcome(
                branch=ProcessBranch.DUPLICATE,
                student_id=student_id,
                date_key=moment.date_key,
                class_key=class_key,
                record=existing[class_key],
            )

        record = ClassAttendanceRecord(
            status=match.status,
            time_in=moment.local_time,
            subject=match.subject,
            time_slot=match.slot.time_slot,
            recorded_at=scan_timestamp,
        )
        self._attendance.put_day(student_id, moment.date_key, {**existing, class_key: record})
        logger.info(
            "Recorded %s for student %s in %s (%s)",
            record.status.value,
            student_id,
            record.subject,
            record.time_slot,
        )
        return ProcessOutcome(
            branch=ProcessBranch.MATCHED,
            student_id=student_id,
            date_key=moment.date_key,
            class_key=class_key,
            record=record,
        )

    def _general_checkin(
        self,
        student_id: str,
        scan_timestamp: int,
        moment: ScanMoment,
        *,
        existing: dict | None = None,
    ) -> ProcessOutcome:
        # Lenient fallback: a scan with no resolvable class is still counted as present.
        if existing is None:
            existing = self._attendance.get_day(student_id, moment.date_key)

        class_key = f"{GENERAL_CLASS_KEY_PREFIX}{moment.local_time}"
        if class_key in existing:
            return ProcessOutcome(
                branch=ProcessBranch.GENERAL_DUPLICATE,
                student_id=student_id,
                date_key=moment.date_key,
                class_key=class_key,
                record=existing[class_key],
            )

        record = ClassAttendanceRecord(
            status=AttendanceStatus.PRESENT,
            time_in=moment.local_time,
            subject=GENERAL_CHECKIN_SUBJECT,
            time_slot=moment.local_time,
            recorded_at=scan_timestamp,
        )
        self._attendance.put_day(student_id, moment.date_key, {**existing, class_key: record})
        return ProcessOutcome(
            branch=ProcessBranch.GENERAL,
            student_id=student_id,
            date_key=moment.date_key,
            class_key=class_key,
            record=record,
        )

    def _recount_absences(self, student_id: str) -> None:
        if self._absence_check is None:
            return
        try:
            self._absence_check(student_id)
        except Exception:
            logger.error("Absence recount failed for student %s", student_id, exc_info=True)

    def _mark_processed(self, student_id: str, rfid: Optional[str]) -> None:
        if not rfid:
            student = self._students.get_by_id(student_id)
            rfid = student.rfid if student and student.rfid else None
        if not rfid:
            logger.warning("Student %s has no RFID on file; marking scan by student id", student_id)
            rfid = student_id
        self._scans.mark_processed(rfid)
