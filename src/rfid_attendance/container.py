from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .alerts.mysql_alert_repository import MySQLAlertRepository
from .alerts.notifier import DisabledNotificationSender, EmailJSNotificationSender, NotificationSender
from .alerts.pipeline import AbsenceAlertPipeline
from .alerts.repository import AlertRepository
from .attendance.feed import ObservableAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceProcessor
from .common.datetime_utils import resolve_timezone
from .core.constants import (
    DEFAULT_ABSENCE_THRESHOLD,
    DEFAULT_ALERT_DEBOUNCE_MS,
    DEFAULT_INTER_STUDENT_PAUSE_MS,
    DEFAULT_SCAN_POLL_INTERVAL_S,
)
from .database.connection import DBConfig, DatabaseConnection
from .scans.mysql_scan_repository import MySQLScanRepository
from .scans.poller import ScanPoller
from .scans.repository import ScanRepository
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    schedules_repo: ScheduleRepository
    attendance_repo: ObservableAttendanceRepository
    students_repo: StudentRepository
    scans_repo: ScanRepository
    alerts_repo: AlertRepository
    sender: NotificationSender

    attendance_processor: AttendanceProcessor
    absence_pipeline: AbsenceAlertPipeline
    scan_poller: ScanPoller


def build_sender(settings: Any) -> NotificationSender:
    service_id = getattr(settings, "EMAILJS_SERVICE_ID", "")
    template_id = getattr(settings, "EMAILJS_TEMPLATE_ID", "")
    public_key = getattr(settings, "EMAILJS_PUBLIC_KEY", "")
    if not (service_id and template_id and public_key):
        return DisabledNotificationSender()
    return EmailJSNotificationSender(service_id=service_id, template_id=template_id, public_key=public_key)


def wire(
    *,
    schedules_repo: ScheduleRepository,
    attendance_repo: AttendanceRepository,
    students_repo: StudentRepository,
    scans_repo: ScanRepository,
    alerts_repo: AlertRepository,
    sender: NotificationSender,
    settings: Any = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services over the given repositories (MySQL in production, fakes in tests)."""

    feed = attendance_repo if isinstance(attendance_repo, ObservableAttendanceRepository) else ObservableAttendanceRepository(attendance_repo)

    pipeline = AbsenceAlertPipeline(
        feed,
        alerts_repo,
        students_repo,
        sender,
        threshold=int(getattr(settings, "ABSENCE_THRESHOLD", DEFAULT_ABSENCE_THRESHOLD)),
        debounce_ms=int(getattr(settings, "ALERT_DEBOUNCE_MS", DEFAULT_ALERT_DEBOUNCE_MS)),
        inter_student_pause_ms=int(getattr(settings, "ALERT_INTER_STUDENT_PAUSE_MS", DEFAULT_INTER_STUDENT_PAUSE_MS)),
    )
    processor = AttendanceProcessor(
        schedules_repo,
        feed,
        students_repo,
        scans_repo,
        absence_check=pipeline.check_student,
        tz=resolve_timezone(getattr(settings, "TIMEZONE", "")),
    )
    poller = ScanPoller(
        scans_repo,
        students_repo,
        processor,
        interval_s=float(getattr(settings, "SCAN_POLL_INTERVAL_S", DEFAULT_SCAN_POLL_INTERVAL_S)),
    )

    return Container(
        conn=conn,
        schedules_repo=schedules_repo,
        attendance_repo=feed,
        students_repo=students_repo,
        scans_repo=scans_repo,
        alerts_repo=alerts_repo,
        sender=sender,
        attendance_processor=processor,
        absence_pipeline=pipeline,
        scan_poller=poller,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        schedules_repo=MySQLScheduleRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        scans_repo=MySQLScanRepository(conn),
        alerts_repo=MySQLAlertRepository(conn),
        sender=build_sender(settings),
        settings=settings,
        conn=conn,
    )
