from __future__ import annotations

import json
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall
from .model import AbsenceAlert
from .repository import AlertRepository


class MySQLAlertRepository(AlertRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_alerts(self, student_id: str) -> Sequence[AbsenceAlert]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, parent_email, alert_sent_at, total_absences_at_time, absent_dates, email_sent
                FROM absence_alerts
                WHERE student_id=%s
                ORDER BY alert_sent_at ASC, alert_id ASC
                """,
                (student_id,),
            )
            return [
                AbsenceAlert(
                    student_id=str(r["student_id"]),
                    parent_email=r["parent_email"],
                    alert_sent_at=int(r["alert_sent_at"]),
                    total_absences_at_time=int(r["total_absences_at_time"]),
                    absent_dates=tuple(json.loads(r["absent_dates"] or "[]")),
                    email_sent=as_bool(r["email_sent"]),
                )
                for r in fetchall(cur)
            ]

    def append_alert(self, student_id: str, alert: AbsenceAlert) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO absence_alerts(
                    student_id, parent_email, alert_sent_at, total_absences_at_time, absent_dates, email_sent
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    student_id,
                    alert.parent_email,
                    int(alert.alert_sent_at),
                    int(alert.total_absences_at_time),
                    json.dumps(list(alert.absent_dates)),
                    1 if alert.email_sent else 0,
                ),
            )
