from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    student_id: str
    name: str
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    rfid: Optional[str] = None
    email: Optional[str] = None
    course: Optional[str] = None
    year: Optional[str] = None
    section: Optional[str] = None

    @property
    def has_parent_contact(self) -> bool:
        return bool(self.parent_email and self.parent_email.strip() and self.parent_name and self.parent_name.strip())
