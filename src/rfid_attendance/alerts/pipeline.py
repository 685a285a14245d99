from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Optional, Set

from ..attendance.feed import ObservableAttendanceRepository
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_ms
from ..core.constants import (
    DEFAULT_ABSENCE_THRESHOLD,
    DEFAULT_ALERT_DEBOUNCE_MS,
    DEFAULT_INTER_STUDENT_PAUSE_MS,
)
from ..core.enums import AlertState
from ..students.repository import StudentRepository
from .aggregator import count_absences
from .model import AbsenceAlert, AlertDecision, ParentAlert
from .notifier import NotificationSender
from .repository import AlertRepository

logger = logging.getLogger(__name__)


class AbsenceAlertPipeline:
    """Debounced, monotonic parent alerting on absence counts.

    Attendance writes call notify_change(); bursts are coalesced into one
    batch that walks every student with history, one at a time. A student is
    alerted when their absence count reaches the threshold and no delivered
    alert already covers that count.

    Only one batch runs at a time, and a student is never evaluated twice
    concurrently (batch and manual checks share the in-flight set).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        alerts: AlertRepository,
        students: StudentRepository,
        sender: NotificationSender,
        *,
        threshold: int = DEFAULT_ABSENCE_THRESHOLD,
        debounce_ms: int = DEFAULT_ALERT_DEBOUNCE_MS,
        inter_student_pause_ms: int = DEFAULT_INTER_STUDENT_PAUSE_MS,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self._attendance = attendance
        self._alerts = alerts
        self._students = students
        self._sender = sender
        self._threshold = int(threshold)
        self._debounce_s = int(debounce_ms) / 1000
        self._pause_s = int(inter_student_pause_ms) / 1000
        self._clock = clock
        self._sleep = sleep
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._batch_running = False
        self._rerun_requested = False
        self._queued: Set[str] = set()
        self._in_flight: Set[str] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._stopped = False

    # lifecycle

    def start(self, feed: ObservableAttendanceRepository | None = None) -> "AbsenceAlertPipeline":
        with self._lock:
            self._stopped = False
        if feed is not None and self._unsubscribe is None:
            self._unsubscribe = feed.subscribe(self.notify_change)
        logger.info("Absence tracking started (threshold=%s)", self._threshold)
        return self

    def stop(self) -> None:
        """Cancel the pending batch and forget tracking state; in-progress deliveries are not awaited."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._rerun_requested = False
            self._queued.clear()
            self._in_flight.clear()
        logger.info("Absence tracking stopped")

    def __enter__(self) -> "AbsenceAlertPipeline":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # state

    @property
    def batch_running(self) -> bool:
        with self._lock:
            return self._batch_running

    @property
    def has_pending_batch(self) -> bool:
        with self._lock:
            return self._timer is not None

    def state_of(self, student_id: str) -> AlertState:
        with self._lock:
            if student_id in self._in_flight:
                return AlertState.PROCESSING
            if student_id in self._queued:
                return AlertState.QUEUED
            return AlertState.IDLE

    def reset(self) -> None:
        with self._lock:
            self._queued.clear()
            self._in_flight.clear()
        logger.info("Absence alert tracking cleared")

    # triggers

    def notify_change(self, student_id: Optional[str] = None, date_key: Optional[str] = None) -> None:
        """(Re)arm the debounce timer; safe to call from any thread."""

        with self._lock:
            if self._stopped:
                return
            if student_id:
                self._queued.add(student_id)
            if self._timer is not None:
                self._timer.cancel()
            timer = self._timer_factory(self._debounce_s, self._fire)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def flush(self) -> None:
        """Run the pending batch now instead of waiting for the debounce window."""

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._fire()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            if self._stopped:
                return
            if self._batch_running:
                self._rerun_requested = True
                logger.debug("Absence batch already running; deferring")
                return
            self._batch_running = True

        try:
            self.run_batch()
        finally:
            with self._lock:
                self._batch_running = False
                rerun = self._rerun_requested and not self._stopped
                self._rerun_requested = False
        if rerun:
            self.notify_change()

    def run_batch(self) -> None:
        student_ids = list(self._attendance.list_student_ids())
        logger.info("Processing absence check for %d students", len(student_ids))

        for index, student_id in enumerate(student_ids):
            with self._lock:
                if self._stopped:
                    return
            if index:
                self._sleep(self._pause_s)
            try:
                self._evaluate(student_id)
            except Exception:
                logger.error("Absence check failed for student %s", student_id, exc_info=True)

    def check_student(self, student_id: str) -> AlertDecision:
        """Evaluate one student immediately. Storage errors propagate to the caller."""

        return self._evaluate(student_id)

    # per student

    def _evaluate(self, student_id: str) -> AlertDecision:
        with self._lock:
            if student_id in self._in_flight:
                return AlertDecision(student_id=student_id, absences=None, reason="in_flight")
            self._in_flight.add(student_id)
            self._queued.discard(student_id)
        try:
            return self._check_and_alert(student_id)
        finally:
            with self._lock:
                self._in_flight.discard(student_id)

    def _check_and_alert(self, student_id: str) -> AlertDecision:
        absences = count_absences(self._attendance.get_all_days(student_id))
        logger.debug("Student %s has %d absences on %d dates", student_id, absences.count, len(absences.dates))

        if absences.count < self._threshold:
            return AlertDecision(student_id=student_id, absences=absences.count, reason="below_threshold")

        history = self._alerts.get_alerts(student_id)
        if any(a.email_sent and a.total_absences_at_time >= absences.count for a in history):
            return AlertDecision(student_id=student_id, absences=absences.count, reason="already_alerted")

        student = self._students.get_by_id(student_id)
        if student is None:
            logger.error("Could not find student data for %s", student_id)
            return AlertDecision(student_id=student_id, absences=absences.count, reason="student_not_found")
        if not student.has_parent_contact:
            logger.error("Missing parent information for student %s", student_id)
            return AlertDecision(student_id=student_id, absences=absences.count, reason="missing_parent_contact")

        pending = AbsenceAlert(
            student_id=student_id,
            parent_email=student.parent_email,
            alert_sent_at=self._clock(),
            total_absences_at_time=absences.count,
            absent_dates=absences.dates,
            email_sent=False,
        )
        self._alerts.append_alert(student_id, pending)

        logger.info("Student %s has %d absences; sending parent alert", student_id, absences.count)
        try:
            delivered = self._sender.send_absence_alert(
                ParentAlert(
                    parent_email=student.parent_email,
                    parent_name=student.parent_name,
                    student_name=student.name,
                    student_id=student_id,
                    absent_dates=absences.dates,
                    total_absences=absences.count,
                )
            )
        except Exception:
            logger.error("Error sending absence alert for student %s", student_id, exc_info=True)
            delivered = False

        if not delivered:
            logger.error("Failed to send absence alert for student %s; left pending", student_id)
            return AlertDecision(student_id=student_id, absences=absences.count, reason="delivery_failed")

        self._alerts.append_alert(student_id, replace(pending, alert_sent_at=self._clock(), email_sent=True))
        logger.info("Absence alert sent for student %s", student_id)
        return AlertDecision(student_id=student_id, absences=absences.count, reason="sent", sent=True)
