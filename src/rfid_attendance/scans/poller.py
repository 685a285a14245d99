from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Set

from ..attendance.model import ProcessOutcome, ScanEvent
from ..attendance.service import AttendanceProcessor
from ..core.constants import DEFAULT_SCAN_POLL_INTERVAL_S
from ..students.repository import StudentRepository
from .repository import ScanRepository

logger = logging.getLogger(__name__)


class ScanPoller:
    """Drain the reader's scan queue into the attendance processor.

    Pending reads are handled earliest first. Cards that belong to no student
    are handed to on_unregistered (e.g. to start an enrolment flow) once per
    poller lifetime and are left unprocessed for that flow to resolve.
    """

    def __init__(
        self,
        scans: ScanRepository,
        students: StudentRepository,
        processor: AttendanceProcessor,
        *,
        on_unregistered: Optional[Callable[[str], None]] = None,
        interval_s: float = DEFAULT_SCAN_POLL_INTERVAL_S,
    ):
        self._scans = scans
        self._students = students
        self._processor = processor
        self._on_unregistered = on_unregistered
        self._interval_s = float(interval_s)

        self._seen_unregistered: Set[str] = set()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> List[ProcessOutcome]:
        outcomes: List[ProcessOutcome] = []
        for scan in self._scans.list_unprocessed():
            student = self._students.get_by_rfid(scan.rfid)
            if student is None:
                if scan.rfid not in self._seen_unregistered:
                    self._seen_unregistered.add(scan.rfid)
                    logger.warning("Unregistered RFID detected: %s", scan.rfid)
                    if self._on_unregistered:
                        self._on_unregistered(scan.rfid)
                continue

            try:
                event = ScanEvent(student_id=student.student_id, timestamp=scan.timestamp)
                outcomes.append(self._processor.handle(event, rfid=scan.rfid))
            except Exception:
                # Left unprocessed; the next poll retries it.
                logger.error("Failed to process scan %s for student %s", scan.rfid, student.student_id, exc_info=True)
        return outcomes

    def forget_unregistered(self, rfid: str) -> None:
        """Allow a card to trigger on_unregistered again (e.g. enrolment was cancelled)."""

        self._seen_unregistered.discard(rfid)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, name="scan-poller", daemon=True)
        self._thread.start()
        logger.info("RFID monitoring started - checking every %s seconds", self._interval_s)

    def stop(self) -> None:
        self._stop_event.set()
        self._thread = None
        logger.info("RFID monitoring stopped")

    def _worker(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.error("Error checking for new scans", exc_info=True)
            self._stop_event.wait(self._interval_s)
