from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status stored on each record."""

    PRESENT = "present"
    ABSENT = "absent"


class Component(str, Enum):
    """Sub-track of an integrated course with its own attendance requirement."""

    THEORY = "theory"
    LAB = "lab"


class CourseType(str, Enum):
    PG = "PG"
    PG_INTEGRATED = "PG-Integrated"
    UG = "UG"
    UG_INTEGRATED = "UG-Integrated"
    UG_LAB_ONLY = "UG-Lab-Only"
    PG_LAB_ONLY = "PG-Lab-Only"

    @property
    def is_integrated(self) -> bool:
        return "Integrated" in self.value
