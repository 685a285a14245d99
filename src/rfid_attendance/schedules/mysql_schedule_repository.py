from __future__ import annotations

from typing import Dict, List, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ScheduleSlot, StudentSchedule, Subject
from .repository import ScheduleRepository


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_schedule(self, student_id: str) -> Optional[StudentSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT day_of_week, time_slot, subject_id
                FROM schedule_slots
                WHERE student_id=%s
                ORDER BY day_of_week, time_slot, slot_id
                """,
                (student_id,),
            )
            slot_rows = fetchall(cur)

            cur.execute(
                "SELECT subject_id, code, name FROM subjects WHERE student_id=%s",
                (student_id,),
            )
            subject_rows = fetchall(cur)

        if not slot_rows and not subject_rows:
            return None

        days: Dict[str, List[ScheduleSlot]] = {}
        for r in slot_rows:
            days.setdefault(str(r["day_of_week"]), []).append(
                ScheduleSlot(time_slot=str(r["time_slot"]), subject_id=r.get("subject_id"))
            )

        subjects = {
            str(r["subject_id"]): Subject(subject_id=str(r["subject_id"]), code=r["code"], name=r["name"])
            for r in subject_rows
        }
        return StudentSchedule(student_id=student_id, days=days, subjects=subjects)
