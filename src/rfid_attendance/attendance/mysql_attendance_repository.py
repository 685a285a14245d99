from __future__ import annotations

from typing import Dict, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ClassAttendanceRecord, DayAttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "date_key, class_key, status, time_in, time_out, subject, time_slot, recorded_at"


def _to_record(r: dict) -> ClassAttendanceRecord:
    return ClassAttendanceRecord(
        status=AttendanceStatus(r["status"]),
        time_in=r["time_in"],
        time_out=r.get("time_out"),
        subject=r["subject"],
        time_slot=r["time_slot"],
        recorded_at=int(r["recorded_at"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_day(self, student_id: str, date_key: str) -> DayAttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM class_attendance
                WHERE student_id=%s AND date_key=%s
                """,
                (student_id, date_key),
            )
            return {r["class_key"]: _to_record(r) for r in fetchall(cur)}

    def put_day(self, student_id: str, date_key: str, day: DayAttendanceRecord) -> None:
        # Delete + insert inside one transaction: db_cursor commits or rolls back as a unit.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM class_attendance WHERE student_id=%s AND date_key=%s",
                (student_id, date_key),
            )
            if not day:
                return
            cur.executemany(
                """
                INSERT INTO class_attendance(
                    student_id, date_key, class_key, status, time_in, time_out, subject, time_slot, recorded_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (
                        student_id,
                        date_key,
                        class_key,
                        rec.status.value,
                        rec.time_in,
                        rec.time_out,
                        rec.subject,
                        rec.time_slot,
                        int(rec.recorded_at),
                    )
                    for class_key, rec in day.items()
                ],
            )

    def get_all_days(self, student_id: str) -> Dict[str, DayAttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM class_attendance
                WHERE student_id=%s
                ORDER BY date_key ASC
                """,
                (student_id,),
            )
            out: Dict[str, DayAttendanceRecord] = {}
            for r in fetchall(cur):
                out.setdefault(r["date_key"], {})[r["class_key"]] = _to_record(r)
            return out

    def list_student_ids(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT student_id FROM class_attendance ORDER BY student_id")
            return [str(r["student_id"]) for r in fetchall(cur)]
