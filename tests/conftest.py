from __future__ import annotations

import copy
import threading
from datetime import datetime
from typing import Optional

import pytest

from src.course_attendance.course_attendance.attendance.model import (
    AttendanceDocument,
    RecordFilter,
    SessionFilter,
)
from src.course_attendance.course_attendance.container import assemble
from src.course_attendance.course_attendance.core.enums import CourseType
from src.course_attendance.course_attendance.courses.model import CourseDescriptor
from src.course_attendance.course_attendance.settings.model import SystemSetting
from src.course_attendance.course_attendance.students.model import StudentInfo

PG_COURSE = 1
INTEGRATED_COURSE = 2
DEFAULT_YEAR = "2024-25"


class InMemoryAttendance:
    """Document store keyed by (course, student, year); hands out copies like a DB would."""

    def __init__(self):
        self._docs: dict[tuple[int, int, str], AttendanceDocument] = {}
        self._next_id = 0
        self._lock = threading.Lock()
        self.fail_for: set[int] = set()

    def documents(self) -> list[AttendanceDocument]:
        return [copy.deepcopy(d) for _, d in sorted(self._docs.items())]

    def load_records(self, course_id: int, record_filter: RecordFilter):
        out = []
        for (cid, _, year), doc in sorted(self._docs.items()):
            if cid != course_id:
                continue
            if record_filter.academic_year and year != record_filter.academic_year:
                continue
            d = copy.deepcopy(doc)
            d.records = [r for r in d.records if record_filter.matches(r)]
            out.append(d)
        return out

    def find_for_student(self, course_id: int, student_id: int, academic_year: Optional[str] = None):
        return [
            copy.deepcopy(doc)
            for (cid, sid, year), doc in sorted(self._docs.items())
            if cid == course_id and sid == student_id and (not academic_year or year == academic_year)
        ]

    def find_or_create(self, course_id: int, student_id: int, academic_year: str) -> AttendanceDocument:
        doc = self._docs.get((course_id, student_id, academic_year))
        if doc is None:
            return AttendanceDocument(course_id=course_id, student_id=student_id, academic_year=academic_year)
        return copy.deepcopy(doc)

    def save(self, document: AttendanceDocument) -> AttendanceDocument:
        if document.student_id in self.fail_for:
            raise RuntimeError("connection lost")
        with self._lock:
            key = (document.course_id, document.student_id, document.academic_year)
            if document.document_id is None:
                existing = self._docs.get(key)
                if existing is not None:
                    document.document_id = existing.document_id
                else:
                    self._next_id += 1
                    document.document_id = self._next_id
            self._docs[key] = copy.deepcopy(document)
        return document

    def save_all(self, documents):
        return [self.save(d) for d in documents]

    def bulk_delete_matching(self, course_id: int, session_filter: SessionFilter) -> int:
        modified = 0
        with self._lock:
            for (cid, _, _), doc in self._docs.items():
                if cid != course_id:
                    continue
                kept = [r for r in doc.records if not session_filter.matches(r)]
                if len(kept) != len(doc.records):
                    doc.records = kept
                    modified += 1
        return modified


class InMemoryCourses:
    def __init__(self, courses: dict[int, CourseDescriptor]):
        self._courses = courses

    def get_by_id(self, course_id: int) -> Optional[CourseDescriptor]:
        return self._courses.get(course_id)


class InMemoryStudents:
    def __init__(self, students: dict[int, StudentInfo]):
        self._students = students

    def get_many(self, student_ids):
        return {int(s): self._students[int(s)] for s in student_ids if int(s) in self._students}


class InMemorySettings:
    def __init__(self):
        self._settings: dict[str, SystemSetting] = {}

    def get(self, key: str) -> Optional[SystemSetting]:
        return self._settings.get(key)

    def list_all(self):
        return [self._settings[k] for k in sorted(self._settings)]

    def upsert(self, *, key: str, value: str, description: Optional[str] = None) -> SystemSetting:
        current = self._settings.get(key)
        if description is None:
            description = current.description if current else ""
        setting = SystemSetting(key=key, value=value, description=description, updated_at=datetime(2024, 1, 1, 12, 0))
        self._settings[key] = setting
        return setting


@pytest.fixture()
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture()
def settings_repo():
    return InMemorySettings()


@pytest.fixture()
def courses_repo():
    return InMemoryCourses(
        {
            PG_COURSE: CourseDescriptor(PG_COURSE, "CS501", "Advanced Algorithms", CourseType.PG),
            INTEGRATED_COURSE: CourseDescriptor(
                INTEGRATED_COURSE, "CS502", "Distributed Systems", CourseType.PG_INTEGRATED
            ),
        }
    )


@pytest.fixture()
def students_repo():
    return InMemoryStudents(
        {
            1: StudentInfo(1, "PG2024002", "Daniel Okafor", "M.Tech CSE"),
            2: StudentInfo(2, "PG2024001", "Asha Raman", "M.Tech CSE"),
            3: StudentInfo(3, "PG2024003", "Mei Lin", "M.Tech CSE"),
        }
    )


@pytest.fixture()
def container(attendance_repo, courses_repo, students_repo, settings_repo):
    return assemble(
        attendance_repo=attendance_repo,
        courses_repo=courses_repo,
        students_repo=students_repo,
        settings_repo=settings_repo,
        default_academic_year=DEFAULT_YEAR,
        write_workers=2,
    )


@pytest.fixture()
def attendance_service(container):
    return container.attendance_service


@pytest.fixture()
def session_service(container):
    return container.session_service
