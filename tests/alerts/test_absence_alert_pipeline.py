from __future__ import annotations

import pytest

from conftest import InMemoryAttendance, InMemoryStudents, RecordingSender
from rfid_attendance.alerts.model import AbsenceAlert
from rfid_attendance.alerts.pipeline import AbsenceAlertPipeline
from rfid_attendance.attendance.feed import ObservableAttendanceRepository
from rfid_attendance.attendance.model import ClassAttendanceRecord
from rfid_attendance.core.enums import AlertState, AttendanceStatus
from rfid_attendance.students.model import Student


class FakeTimer:
    def __init__(self, interval, fn):
        self.interval = interval
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.fn()


class TimerFactory:
    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, fn):
        timer = FakeTimer(interval, fn)
        self.timers.append(timer)
        return timer

    @property
    def live(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]


def _absent(slot: str = "08:00-09:00_cs") -> dict:
    return {
        slot: ClassAttendanceRecord(
            status=AttendanceStatus.ABSENT,
            time_in="08:45",
            subject="CS101 - Intro",
            time_slot=slot.split("_")[0],
            recorded_at=0,
        )
    }


def _seed_absences(attendance: InMemoryAttendance, student_id: str, *dates: str) -> None:
    for d in dates:
        attendance.put_day(student_id, d, _absent())


@pytest.fixture
def timers():
    return TimerFactory()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def clock():
    ticks = iter(range(1_000, 10_000))
    return lambda: next(ticks)


@pytest.fixture
def pipeline(attendance, alerts, students, sender, timers, sleeps, clock):
    return AbsenceAlertPipeline(
        attendance,
        alerts,
        students,
        sender,
        clock=clock,
        sleep=sleeps.append,
        timer_factory=timers,
    )


def test_three_absences_on_three_dates_send_exactly_one_alert(pipeline, attendance, alerts, sender):
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")

    pipeline.flush()
    pipeline.flush()

    assert len(sender.sent) == 1
    sent = sender.sent[0]
    assert sent.total_absences == 3
    assert sent.absent_dates == ("2024-01-01", "2024-01-02", "2024-01-03")
    assert sent.parent_email == "maria@example.com"
    assert sent.parent_name == "Maria Cruz"
    assert sent.student_name == "Ana Cruz"

    history = alerts.get_alerts("S-001")
    assert [a.email_sent for a in history] == [False, True]
    assert all(a.total_absences_at_time == 3 for a in history)
    assert all(len(a.absent_dates) == 3 for a in history)


def test_existing_sent_alert_suppresses_same_count_but_not_higher(pipeline, attendance, alerts, sender):
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")
    alerts.append_alert(
        "S-001",
        AbsenceAlert(
            student_id="S-001",
            parent_email="maria@example.com",
            alert_sent_at=1,
            total_absences_at_time=3,
            email_sent=True,
        ),
    )

    decision = pipeline.check_student("S-001")
    assert decision.reason == "already_alerted"
    assert sender.sent == []

    _seed_absences(attendance, "S-001", "2024-01-04")
    decision = pipeline.check_student("S-001")

    assert decision.sent is True
    assert [a.total_absences for a in sender.sent] == [4]


def test_below_threshold_sends_nothing(pipeline, attendance, alerts, sender):
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02")

    decision = pipeline.check_student("S-001")

    assert decision.reason == "below_threshold"
    assert decision.absences == 2
    assert sender.sent == []
    assert alerts.get_alerts("S-001") == []


def test_missing_parent_contact_is_skipped_without_records(attendance, alerts, sender, timers):
    students = InMemoryStudents(Student(student_id="S-001", name="Ana Cruz", parent_email="maria@example.com"))
    pipeline = AbsenceAlertPipeline(attendance, alerts, students, sender, timer_factory=timers, sleep=lambda s: None)
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")

    decision = pipeline.check_student("S-001")

    assert decision.reason == "missing_parent_contact"
    assert sender.sent == []
    assert alerts.get_alerts("S-001") == []


def test_unknown_student_is_skipped(attendance, alerts, sender, timers):
    pipeline = AbsenceAlertPipeline(attendance, alerts, InMemoryStudents(), sender, timer_factory=timers)
    _seed_absences(attendance, "S-404", "2024-01-01", "2024-01-02", "2024-01-03")

    assert pipeline.check_student("S-404").reason == "student_not_found"


def test_failed_delivery_leaves_pending_and_is_retried(attendance, alerts, students, timers):
    sender = RecordingSender(False, True)
    pipeline = AbsenceAlertPipeline(attendance, alerts, students, sender, timer_factory=timers, sleep=lambda s: None)
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")

    first = pipeline.check_student("S-001")
    assert first.reason == "delivery_failed"
    assert [a.email_sent for a in alerts.get_alerts("S-001")] == [False]

    second = pipeline.check_student("S-001")
    assert second.sent is True
    assert [a.email_sent for a in alerts.get_alerts("S-001")] == [False, False, True]
    assert len(sender.sent) == 2


def test_sender_exception_is_treated_as_failed_delivery(attendance, alerts, students, timers):
    class ExplodingSender:
        def send_absence_alert(self, alert):
            raise RuntimeError("smtp down")

    pipeline = AbsenceAlertPipeline(attendance, alerts, students, ExplodingSender(), timer_factory=timers)
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")

    assert pipeline.check_student("S-001").reason == "delivery_failed"
    assert [a.email_sent for a in alerts.get_alerts("S-001")] == [False]


def test_bursts_of_changes_coalesce_into_one_batch(pipeline, attendance, sender, timers):
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")

    pipeline.notify_change("S-001", "2024-01-01")
    pipeline.notify_change("S-001", "2024-01-02")
    pipeline.notify_change("S-001", "2024-01-03")

    assert len(timers.timers) == 3
    assert len(timers.live) == 1
    assert timers.live[0].interval == 2.0
    assert timers.live[0].daemon is True
    assert pipeline.state_of("S-001") == AlertState.QUEUED

    timers.live[0].fire()

    assert len(sender.sent) == 1
    assert pipeline.state_of("S-001") == AlertState.IDLE
    assert pipeline.has_pending_batch is False


def test_batch_fired_while_another_runs_is_deferred(attendance, alerts, students, timers):
    pipeline_ref = {}
    observed = []

    class ReentrantSender(RecordingSender):
        def send_absence_alert(self, alert):
            pipeline = pipeline_ref["p"]
            observed.append(pipeline.batch_running)
            observed.append(pipeline.state_of(alert.student_id))
            # A second debounce firing mid-batch must not start a nested batch.
            pipeline.flush()
            return super().send_absence_alert(alert)

    sender = ReentrantSender()
    pipeline = AbsenceAlertPipeline(attendance, alerts, students, sender, timer_factory=timers, sleep=lambda s: None)
    pipeline_ref["p"] = pipeline
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")

    pipeline.flush()

    assert observed == [True, AlertState.PROCESSING]
    assert len(sender.sent) == 1
    # The deferred request re-arms the debounce once the batch finishes.
    assert len(timers.live) == 1
    timers.live[0].fire()
    assert len(sender.sent) == 1


def test_same_student_is_not_processed_reentrantly(attendance, alerts, students, timers):
    pipeline_ref = {}
    nested = []

    class ReentrantSender(RecordingSender):
        def send_absence_alert(self, alert):
            decision = pipeline_ref["p"].check_student(alert.student_id)
            nested.append((decision.reason, decision.absences))
            return super().send_absence_alert(alert)

    sender = ReentrantSender()
    pipeline = AbsenceAlertPipeline(attendance, alerts, students, sender, timer_factory=timers)
    pipeline_ref["p"] = pipeline
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")

    pipeline.check_student("S-001")

    assert nested == [("in_flight", None)]
    assert len(sender.sent) == 1


def test_students_are_processed_sequentially_with_pause(pipeline, attendance, students, sleeps):
    students.by_id["S-002"] = Student(student_id="S-002", name="Ben", parent_name="P", parent_email="p@example.com")
    students.by_id["S-003"] = Student(student_id="S-003", name="Cy", parent_name="Q", parent_email="q@example.com")
    _seed_absences(attendance, "S-001", "2024-01-01")
    _seed_absences(attendance, "S-002", "2024-01-01")
    _seed_absences(attendance, "S-003", "2024-01-01")

    pipeline.flush()

    assert sleeps == [0.1, 0.1]


def test_one_failing_student_does_not_stop_the_batch(attendance, students, sender, timers):
    class FlakyAlerts:
        def __init__(self):
            self.appended = []

        def get_alerts(self, student_id):
            if student_id == "S-001":
                raise ConnectionError("alerts table locked")
            return []

        def append_alert(self, student_id, alert):
            self.appended.append((student_id, alert.email_sent))

    students.by_id["S-002"] = Student(student_id="S-002", name="Ben", parent_name="P", parent_email="p@example.com")
    alerts = FlakyAlerts()
    pipeline = AbsenceAlertPipeline(attendance, alerts, students, sender, timer_factory=timers, sleep=lambda s: None)
    _seed_absences(attendance, "S-001", "2024-01-01", "2024-01-02", "2024-01-03")
    _seed_absences(attendance, "S-002", "2024-01-01", "2024-01-02", "2024-01-03")

    pipeline.flush()

    assert alerts.appended == [("S-002", False), ("S-002", True)]
    assert pipeline.state_of("S-001") == AlertState.IDLE


def test_start_subscribes_and_stop_cancels_pending_batch(alerts, students, sender, timers):
    feed = ObservableAttendanceRepository(InMemoryAttendance())
    pipeline = AbsenceAlertPipeline(feed, alerts, students, sender, timer_factory=timers)

    with pipeline.start(feed):
        feed.put_day("S-001", "2024-01-01", _absent())
        assert pipeline.has_pending_batch
        pending = timers.live[0]

    assert pending.cancelled is True
    assert pipeline.has_pending_batch is False
    assert pipeline.state_of("S-001") == AlertState.IDLE

    feed.put_day("S-001", "2024-01-02", _absent())
    pipeline.notify_change("S-001")
    assert timers.live == []


def test_reset_clears_queued_students(pipeline):
    pipeline.notify_change("S-001")
    assert pipeline.state_of("S-001") == AlertState.QUEUED

    pipeline.reset()

    assert pipeline.state_of("S-001") == AlertState.IDLE
