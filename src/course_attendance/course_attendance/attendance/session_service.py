from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import day_window, parse_datetime
from ..common.validators import (
    canonical_time,
    is_valid_id,
    require_academic_year,
    require_component,
    require_id,
    require_time_slot,
)
from ..core.constants import DEFAULT_WRITE_WORKERS
from ..core.enums import AttendanceStatus, Component
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.model import CourseDescriptor
from ..courses.repository import CourseRepository
from ..settings.service import SystemSettingService
from .model import AttendanceRecord, SessionFilter, StudentEntry
from .repository import AttendanceRepository
from .session_key import session_key

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of a per-student batch.

    Writes are independent: a failed student never rolls back the others.
    """

    updated: int = 0
    skipped: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)
    not_found: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "updated": self.updated,
            "skipped": list(self.skipped),
            "failed": list(self.failed),
            "notFound": list(self.not_found),
        }


def upsert_record(records: Sequence[AttendanceRecord], record: AttendanceRecord) -> list[AttendanceRecord]:
    """Replace the record holding ``record``'s session in place, else append.

    Extra records already sharing that session are dropped, so a document
    never holds two records for one session.
    """

    key = session_key(record)
    out: list[AttendanceRecord] = []
    replaced = False
    for r in records:
        if session_key(r) == key:
            if not replaced:
                out.append(record)
                replaced = True
            continue
        out.append(r)
    if not replaced:
        out.append(record)
    return out


def move_record(records: Sequence[AttendanceRecord], index: int, record: AttendanceRecord) -> list[AttendanceRecord]:
    """Overwrite ``records[index]`` keeping its position; drop others on the new session."""

    key = session_key(record)
    out: list[AttendanceRecord] = []
    for i, r in enumerate(records):
        if i == index:
            out.append(record)
        elif session_key(r) != key:
            out.append(r)
    return out


class SessionMutationService:
    """Write side: take, modify and delete a class session's attendance."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        courses: CourseRepository,
        *,
        default_academic_year: str,
        settings: SystemSettingService | None = None,
        max_workers: int = DEFAULT_WRITE_WORKERS,
    ):
        default_year = require_academic_year(default_academic_year)
        if not default_year:
            raise ValueError("default_academic_year is required")
        self._attendance = attendance
        self._courses = courses
        self._settings = settings
        self._default_academic_year = default_year
        self._max_workers = max(int(max_workers), 1)

    @property
    def default_academic_year(self) -> str:
        return self._default_academic_year

    def _ensure_entry_enabled(self) -> None:
        if self._settings is not None:
            self._settings.ensure_attendance_entry_enabled()

    def _get_course(self, course_id) -> CourseDescriptor:
        course = self._courses.get_by_id(require_id(course_id, "course ID"))
        if not course:
            raise NotFoundError("Course not found")
        return course

    @staticmethod
    def _component_for(course: CourseDescriptor, value) -> Optional[Component]:
        component = require_component(value)
        if course.is_integrated and component is None:
            raise ValidationError("Component (theory/lab) is required for integrated courses")
        return component

    @staticmethod
    def _validate_entries(entries, result: BatchResult) -> list[StudentEntry]:
        if entries is None or isinstance(entries, (str, bytes, dict)) or not isinstance(entries, Iterable):
            raise ValidationError("Invalid attendance data")

        by_student: dict[int, StudentEntry] = {}
        for raw in entries:
            if isinstance(raw, StudentEntry):
                student_id, status, remarks = raw.student_id, raw.status, raw.remarks
            else:
                raw = raw if isinstance(raw, dict) else {}
                student_id = raw.get("studentId", raw.get("student_id"))
                status = raw.get("status")
                remarks = raw.get("remarks") or None

            if not is_valid_id(student_id):
                result.skipped.append({"studentId": student_id, "reason": "invalid student ID"})
                continue
            try:
                status = AttendanceStatus(status)
            except ValueError:
                result.skipped.append({"studentId": student_id, "reason": "invalid status"})
                continue

            sid = int(student_id)
            if sid in by_student:
                result.skipped.append({"studentId": sid, "reason": "duplicate entry"})
            by_student[sid] = StudentEntry(student_id=sid, status=status, remarks=remarks)

        if result.skipped:
            logger.warning("Skipped %d attendance entries: %s", len(result.skipped), result.skipped)
        return list(by_student.values())

    def _run_batch(
        self,
        entries: Sequence[StudentEntry],
        work: Callable[[StudentEntry], bool],
        result: BatchResult,
    ) -> BatchResult:
        if not entries:
            return result

        workers = min(self._max_workers, len(entries))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(work, entry): entry for entry in entries}
            for future in as_completed(futures):
                entry = futures[future]
                try:
                    applied = future.result()
                except Exception as e:
                    logger.exception("Attendance write failed for student %s", entry.student_id)
                    result.failed.append({"studentId": entry.student_id, "error": str(e)})
                    continue
                if applied:
                    result.updated += 1
                else:
                    result.not_found.append(entry.student_id)

        result.failed.sort(key=lambda f: f["studentId"])
        result.not_found.sort()
        return result

    def take_attendance(
        self,
        course_id,
        *,
        date,
        entries,
        component=None,
        academic_year: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> BatchResult:
        self._ensure_entry_enabled()
        course = self._get_course(course_id)
        component = self._component_for(course, component)
        when = parse_datetime(date)
        start, end = require_time_slot(start_time, end_time)
        year = require_academic_year(academic_year) or self._default_academic_year

        result = BatchResult()
        valid = self._validate_entries(entries, result)

        def apply(entry: StudentEntry) -> bool:
            doc = self._attendance.find_or_create(course.course_id, entry.student_id, year)
            record = AttendanceRecord(
                date=when,
                status=entry.status,
                component=component,
                start_time=start,
                end_time=end,
                remarks=entry.remarks or remarks or None,
            )
            doc.records = upsert_record(doc.records, record)
            self._attendance.save(doc)
            return True

        self._run_batch(valid, apply, result)
        logger.info(
            "Attendance recorded for course %s on %s (%s, %s): %d updated, %d skipped, %d failed",
            course.course_id,
            when.date().isoformat(),
            component.value if component else "default",
            year,
            result.updated,
            len(result.skipped),
            len(result.failed),
        )
        return result

    def modify_attendance(
        self,
        course_id,
        *,
        original_date,
        entries,
        date=None,
        original_start_time: Optional[str] = None,
        original_end_time: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        original_component=None,
        component=None,
        academic_year: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> BatchResult:
        """Move/re-mark an existing session for each listed student.

        Students without a record on the original session are left alone and
        reported in ``not_found``.
        """

        self._ensure_entry_enabled()
        course = self._get_course(course_id)
        original_when = parse_datetime(original_date)
        new_when = parse_datetime(date) if date else original_when
        original_component = self._component_for(course, original_component)
        new_component = require_component(component) or original_component
        original_start, original_end = require_time_slot(original_start_time, original_end_time, "original")
        new_start, new_end = require_time_slot(start_time, end_time)
        year = require_academic_year(academic_year)

        day_start, day_end = day_window(original_when)

        def is_original(r: AttendanceRecord) -> bool:
            return (
                day_start <= r.date <= day_end
                and canonical_time(r.start_time) == original_start
                and canonical_time(r.end_time) == original_end
                and r.component == original_component
            )

        result = BatchResult()
        valid = self._validate_entries(entries, result)

        def apply(entry: StudentEntry) -> bool:
            changed = []
            for doc in self._attendance.find_for_student(course.course_id, entry.student_id, year):
                index = next((i for i, r in enumerate(doc.records) if is_original(r)), None)
                if index is None:
                    continue
                old = doc.records[index]
                moved = AttendanceRecord(
                    date=new_when,
                    status=entry.status,
                    component=new_component,
                    start_time=new_start,
                    end_time=new_end,
                    remarks=entry.remarks or remarks or old.remarks,
                )
                doc.records = move_record(doc.records, index, moved)
                changed.append(doc)
            if changed:
                self._attendance.save_all(changed)
            return bool(changed)

        self._run_batch(valid, apply, result)
        logger.info(
            "Attendance session moved for course %s from %s to %s: %d updated, %d not found, %d failed",
            course.course_id,
            original_when.date().isoformat(),
            new_when.date().isoformat(),
            result.updated,
            len(result.not_found),
            len(result.failed),
        )
        return result

    def delete_attendance(
        self,
        course_id,
        *,
        date,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        component=None,
    ) -> int:
        """Remove a session from every student's document; returns documents modified.

        Without a time slot every session of that day (and component) goes.
        """

        self._ensure_entry_enabled()
        course = self._get_course(course_id)
        component = self._component_for(course, component)
        when = parse_datetime(date)

        start, end = require_time_slot(start_time, end_time)
        session_filter = SessionFilter(
            day=when.date(),
            start_time=start,
            end_time=end,
            component=component,
        )
        modified = self._attendance.bulk_delete_matching(course.course_id, session_filter)
        logger.info(
            "Deleted attendance for course %s on %s (%s): %d documents modified",
            course.course_id,
            session_filter.day.isoformat(),
            component.value if component else "any component",
            modified,
        )
        return modified
