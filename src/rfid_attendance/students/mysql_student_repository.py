from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Student
from .repository import StudentRepository

_SELECT = """
    SELECT student_id, name, parent_name, parent_email, rfid, email, course, year_level, section
    FROM students
"""


def _to_student(r: dict) -> Student:
    return Student(
        student_id=str(r["student_id"]),
        name=r["name"],
        parent_name=r.get("parent_name"),
        parent_email=r.get("parent_email"),
        rfid=r.get("rfid"),
        email=r.get("email"),
        course=r.get("course"),
        year=r.get("year_level"),
        section=r.get("section"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE student_id=%s", (student_id,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_rfid(self, rfid: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE rfid=%s", (rfid,))
            r = fetchone(cur)
            return _to_student(r) if r else None
