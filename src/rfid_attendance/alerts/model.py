from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class AbsenceAlert:
    """One entry in a student's alert history.

    A delivery produces two entries at the same count: a pending one
    (email_sent=False) written before sending, and a sent one afterwards.
    """

    student_id: str
    parent_email: str
    alert_sent_at: int
    total_absences_at_time: int
    absent_dates: Tuple[str, ...] = field(default_factory=tuple)
    email_sent: bool = False

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "parentEmail": self.parent_email,
            "alertSentAt": self.alert_sent_at,
            "totalAbsencesAtTime": self.total_absences_at_time,
            "absentDates": list(self.absent_dates),
            "emailSent": self.email_sent,
        }


@dataclass(frozen=True)
class ParentAlert:
    """Payload handed to the notification sender."""

    parent_email: str
    parent_name: str
    student_name: str
    student_id: str
    absent_dates: Tuple[str, ...]
    total_absences: int


@dataclass(frozen=True)
class AlertDecision:
    """Result of evaluating one student (manual checks return it to the caller)."""

    student_id: str
    absences: Optional[int]
    reason: str
    sent: bool = False
