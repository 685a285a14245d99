from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from ..attendance.classifier import TimeWindowClassifier
from ..common.datetime_utils import parse_time_slot
from ..core.constants import PRIORITY_GRACE, PRIORITY_LATE_WINDOW, PRIORITY_LIVE, PRIORITY_OVERDUE
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import ScheduleSlot, Subject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    slot: ScheduleSlot
    subject_id: str
    subject: str
    status: AttendanceStatus
    priority: int

    @property
    def class_key(self) -> str:
        return f"{self.slot.time_slot}_{self.subject_id}"


@dataclass
class ScheduleMatcher:
    """Pick the single slot a scan belongs to.

    A slot is a candidate while the scan is inside its grace..absent window
    or inside the class period itself. A scan more than 30 minutes into a
    running class matches it as absent, but any slot whose window the scan
    is inside ranks above it.

    Slots must be supplied sorted by start time: on equal priority the first
    candidate wins, which favours the earliest-starting class.
    """

    classifier: TimeWindowClassifier = field(default_factory=TimeWindowClassifier)

    def priority(self, scan_minutes: int, start: int, end: int) -> int:
        if not self.classifier.is_eligible(scan_minutes, start):
            return PRIORITY_OVERDUE
        if start <= scan_minutes <= end:
            return PRIORITY_LIVE
        if self.classifier.grace_start(start) <= scan_minutes < start:
            return PRIORITY_GRACE
        return PRIORITY_LATE_WINDOW

    def find_best_match(
        self,
        scan_minutes: int,
        slots: Sequence[ScheduleSlot],
        subjects: Mapping[str, Subject],
    ) -> Optional[MatchResult]:
        best: Optional[tuple[int, ScheduleSlot, int, int]] = None

        for slot in slots:
            if not slot.subject_id:
                continue
            try:
                start, end = parse_time_slot(slot.time_slot)
            except ValidationError:
                logger.warning("Skipping malformed time slot %r", slot.time_slot)
                continue

            live = start <= scan_minutes <= end
            if not (live or self.classifier.is_eligible(scan_minutes, start)):
                continue

            prio = self.priority(scan_minutes, start, end)
            if best is None or prio > best[0]:
                best = (prio, slot, start, end)

        if best is None:
            return None

        prio, slot, start, end = best
        subject = subjects.get(slot.subject_id)
        return MatchResult(
            slot=slot,
            subject_id=slot.subject_id,
            subject=subject.label if subject else slot.subject_id,
            status=self.classifier.classify(scan_minutes, start, end),
            priority=prio,
        )
