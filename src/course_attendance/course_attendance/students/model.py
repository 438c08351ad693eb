from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StudentInfo:
    """Presentation data attached to attendance results; never used in aggregation."""

    student_id: int
    registration_number: str
    name: str
    program: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "registrationNumber": self.registration_number,
            "name": self.name,
            "program": self.program,
        }
