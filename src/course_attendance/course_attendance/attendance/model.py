from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.validators import canonical_time
from ..core.enums import AttendanceStatus, Component


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's mark for one class session.

    ``start_time``/``end_time`` are canonical ``HH:MM`` strings (or None).
    """

    date: datetime
    status: AttendanceStatus
    component: Optional[Component] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    remarks: Optional[str] = None

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "status": self.status.value,
            "component": self.component.value if self.component else None,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "remarks": self.remarks,
        }


@dataclass
class AttendanceDocument:
    """Per (course, student, academic year) container of attendance records.

    Mutable on purpose: the mutation engine edits ``records`` in memory and
    then hands the whole document to ``AttendanceRepository.save``.
    """

    course_id: int
    student_id: int
    academic_year: str
    records: list[AttendanceRecord] = field(default_factory=list)
    document_id: Optional[int] = None


@dataclass(frozen=True)
class RecordFilter:
    component: Optional[Component] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    academic_year: Optional[str] = None

    def matches(self, record: AttendanceRecord) -> bool:
        if self.component is not None and record.component != self.component:
            return False
        day = record.date.date()
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class SessionFilter:
    """Target of a bulk delete: one calendar day plus optional exact fields."""

    day: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    component: Optional[Component] = None

    def matches(self, record: AttendanceRecord) -> bool:
        if record.date.date() != self.day:
            return False
        if self.start_time is not None and canonical_time(record.start_time) != self.start_time:
            return False
        if self.end_time is not None and canonical_time(record.end_time) != self.end_time:
            return False
        if self.component is not None and record.component != self.component:
            return False
        return True


@dataclass(frozen=True)
class StudentEntry:
    """One row of a take/modify payload, validated."""

    student_id: int
    status: AttendanceStatus
    remarks: Optional[str] = None
