from __future__ import annotations

from typing import Protocol, Sequence

from .model import AbsenceAlert


class AlertRepository(Protocol):
    def get_alerts(self, student_id: str) -> Sequence[AbsenceAlert]:
        raise NotImplementedError

    def append_alert(self, student_id: str, alert: AbsenceAlert) -> None:
        """Append-only: existing entries are never rewritten."""

        raise NotImplementedError
