"""Attendance aggregation.

Pure functions over already-loaded records. Percentages are "distinct sessions
attended / distinct sessions held", where a session is a ``session_key``; raw
record counts are never used, so duplicated records (for example from a
student's re-enrollment document) cannot inflate either side.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Sequence

from ..core.constants import ATTENDANCE_THRESHOLD, DEFAULT_SESSION_COMPONENT
from ..core.enums import Component
from .model import AttendanceDocument, AttendanceRecord
from .session_key import session_key, time_slot_label


def round_percentage(value: float) -> float:
    """Two decimals, half-up on the third."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class AttendanceStats:
    total_classes: int
    present_classes: int
    percentage: float

    @property
    def attendance_percentage(self) -> float:
        return round_percentage(self.percentage)

    @property
    def below_threshold(self) -> bool:
        return self.percentage < ATTENDANCE_THRESHOLD

    def to_dict(self) -> dict:
        return {
            "totalClasses": self.total_classes,
            "presentClasses": self.present_classes,
            "attendancePercentage": self.attendance_percentage,
            "belowThreshold": self.below_threshold,
        }


@dataclass(frozen=True)
class AggregatedStudentAttendance:
    student_id: int
    records: list[AttendanceRecord]
    stats: AttendanceStats

    @property
    def total_classes(self) -> int:
        return self.stats.total_classes

    @property
    def present_classes(self) -> int:
        return self.stats.present_classes

    @property
    def attendance_percentage(self) -> float:
        return self.stats.attendance_percentage

    @property
    def below_threshold(self) -> bool:
        return self.stats.below_threshold

    def to_dict(self) -> dict:
        data = {"studentId": self.student_id, "records": [r.to_dict() for r in self.records]}
        data.update(self.stats.to_dict())
        return data


@dataclass(frozen=True)
class SessionSlot:
    date: str
    time_slot: Optional[str]
    components: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"date": self.date, "timeSlot": self.time_slot, "components": list(self.components)}


@dataclass(frozen=True)
class CourseAttendanceSummary:
    total_students: int
    total_classes: int
    below_threshold_count: int
    average_attendance: float
    attendance_sessions: list[SessionSlot]

    def to_dict(self) -> dict:
        return {
            "totalStudents": self.total_students,
            "totalClasses": self.total_classes,
            "belowThresholdCount": self.below_threshold_count,
            "averageAttendance": self.average_attendance,
            "attendanceSessions": [s.to_dict() for s in self.attendance_sessions],
        }


def compute_stats(records: Iterable[AttendanceRecord]) -> AttendanceStats:
    held: set[str] = set()
    attended: set[str] = set()
    for r in records:
        key = session_key(r)
        held.add(key)
        if r.is_present:
            attended.add(key)

    total = len(held)
    present = len(attended)
    percentage = (present / total) * 100 if total else 0.0
    return AttendanceStats(total_classes=total, present_classes=present, percentage=percentage)


def _record_sort_key(r: AttendanceRecord):
    return (
        r.date.date(),
        r.start_time or "",
        r.end_time or "",
        r.component.value if r.component else DEFAULT_SESSION_COMPONENT,
    )


def dedupe_records(records: Iterable[AttendanceRecord]) -> list[AttendanceRecord]:
    """One record per session, ordered by day then time slot.

    When merged documents disagree on a session, the present mark is kept so
    the visible records agree with ``compute_stats``.
    """

    by_key: dict[str, AttendanceRecord] = {}
    for r in records:
        key = session_key(r)
        current = by_key.get(key)
        if current is None or (r.is_present and not current.is_present):
            by_key[key] = r
    return sorted(by_key.values(), key=_record_sort_key)


def aggregate_student(student_id: int, records: Sequence[AttendanceRecord]) -> AggregatedStudentAttendance:
    return AggregatedStudentAttendance(
        student_id=int(student_id),
        records=dedupe_records(records),
        stats=compute_stats(records),
    )


def merge_documents(documents: Iterable[AttendanceDocument]) -> "OrderedDict[int, list[AttendanceRecord]]":
    """Union every document's records per student, before any key is derived."""

    merged: "OrderedDict[int, list[AttendanceRecord]]" = OrderedDict()
    for doc in sorted(documents, key=lambda d: (d.student_id, d.academic_year)):
        merged.setdefault(doc.student_id, []).extend(doc.records)
    return merged


def eligible_records(
    records: Iterable[AttendanceRecord],
    *,
    integrated: bool,
    component: Optional[Component] = None,
) -> list[AttendanceRecord]:
    """Apply the component policy: integrated courses ignore component-less records."""

    out = []
    for r in records:
        if component is not None and r.component != component:
            continue
        if integrated and r.component is None:
            continue
        out.append(r)
    return out


def split_by_component(
    records_by_student: Mapping[int, Sequence[AttendanceRecord]],
) -> dict[Component, "OrderedDict[int, list[AttendanceRecord]]"]:
    """Theory and lab views for an integrated course queried without a component."""

    views: dict[Component, OrderedDict] = {}
    for component in (Component.THEORY, Component.LAB):
        view: "OrderedDict[int, list[AttendanceRecord]]" = OrderedDict()
        for student_id, records in records_by_student.items():
            view[student_id] = [r for r in records if r.component == component]
        views[component] = view
    return views


def _session_slots(records: Iterable[AttendanceRecord]) -> tuple[int, list[SessionSlot]]:
    keys: set[str] = set()
    slots: "OrderedDict[tuple[str, Optional[str]], set[str]]" = OrderedDict()
    for r in records:
        keys.add(session_key(r))
        slot = (r.date.isoformat()[:10], time_slot_label(r))
        slots.setdefault(slot, set()).add(r.component.value if r.component else DEFAULT_SESSION_COMPONENT)

    sessions = [SessionSlot(date=d, time_slot=ts, components=sorted(comps)) for (d, ts), comps in slots.items()]
    # Two stable passes: time slot ascending (untimed last), then newest date first.
    sessions.sort(key=lambda s: (s.time_slot is None, s.time_slot or ""))
    sessions.sort(key=lambda s: s.date, reverse=True)
    return len(keys), sessions


def summarize_course(records_by_student: Mapping[int, Sequence[AttendanceRecord]]) -> CourseAttendanceSummary:
    """Course-level numbers.

    ``total_classes`` counts distinct sessions across the whole course, so a
    session marked for 30 students is one class, not 30.
    """

    percentages: list[float] = []
    below = 0
    everything: list[AttendanceRecord] = []
    for records in records_by_student.values():
        if not records:
            continue
        stats = compute_stats(records)
        percentages.append(stats.percentage)
        if stats.below_threshold:
            below += 1
        everything.extend(records)

    total_classes, sessions = _session_slots(everything)
    average = sum(percentages) / len(percentages) if percentages else 0.0

    return CourseAttendanceSummary(
        total_students=len(percentages),
        total_classes=total_classes,
        below_threshold_count=below,
        average_attendance=round_percentage(average),
        attendance_sessions=sessions,
    )
