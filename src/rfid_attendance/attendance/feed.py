from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Sequence

from .model import DayAttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, str], None]


class ObservableAttendanceRepository(AttendanceRepository):
    """Decorator over an attendance store that publishes every day-map write.

    Subscribers are called with (student_id, date_key) after put_day succeeds.
    """

    def __init__(self, inner: AttendanceRepository):
        self._inner = inner
        self._listeners: List[ChangeListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def get_day(self, student_id: str, date_key: str) -> DayAttendanceRecord:
        return self._inner.get_day(student_id, date_key)

    def put_day(self, student_id: str, date_key: str, day: DayAttendanceRecord) -> None:
        self._inner.put_day(student_id, date_key, day)
        self._publish(student_id, date_key)

    def get_all_days(self, student_id: str) -> Dict[str, DayAttendanceRecord]:
        return self._inner.get_all_days(student_id)

    def list_student_ids(self) -> Sequence[str]:
        return self._inner.list_student_ids()

    def _publish(self, student_id: str, date_key: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(student_id, date_key)
            except Exception:
                # The write already succeeded; a broken subscriber must not undo that for the caller.
                logger.error("Attendance change listener failed for %s/%s", student_id, date_key, exc_info=True)
