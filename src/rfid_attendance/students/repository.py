from __future__ import annotations

from typing import Optional, Protocol

from .model import Student


class StudentRepository(Protocol):
    def get_by_id(self, student_id: str) -> Optional[Student]:
        raise NotImplementedError

    def get_by_rfid(self, rfid: str) -> Optional[Student]:
        raise NotImplementedError
