from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Union

from ..common.datetime_utils import parse_optional_day
from ..common.validators import require_academic_year, require_component, require_id
from ..core.enums import Component
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.model import CourseDescriptor
from ..courses.repository import CourseRepository
from ..students.model import StudentInfo
from ..students.repository import StudentRepository
from .aggregation import (
    AggregatedStudentAttendance,
    CourseAttendanceSummary,
    aggregate_student,
    eligible_records,
    merge_documents,
    split_by_component,
    summarize_course,
)
from .model import AttendanceRecord, RecordFilter
from .repository import AttendanceRepository


@dataclass(frozen=True)
class StudentAttendanceReport:
    """One student's attendance in a course.

    Exactly one of ``overall`` or the ``theory``/``lab`` pair is set; the pair
    is used for integrated courses queried without a component so the two
    requirements are never blended into one percentage.
    """

    student_id: int
    student: Optional[StudentInfo] = None
    overall: Optional[AggregatedStudentAttendance] = None
    theory: Optional[AggregatedStudentAttendance] = None
    lab: Optional[AggregatedStudentAttendance] = None
    course: Optional[CourseDescriptor] = None
    academic_years: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data: dict = {
            "studentId": self.student_id,
            "student": self.student.to_dict() if self.student else None,
        }
        if self.course is not None:
            data["course"] = self.course.to_dict()
            data["academicYears"] = list(self.academic_years)
        if self.overall is not None:
            body = self.overall.to_dict()
            body.pop("studentId", None)
            data.update(body)
        else:
            for name, block in (("theory", self.theory), ("lab", self.lab)):
                body = block.to_dict()
                body.pop("studentId", None)
                data[name] = body
        return data


@dataclass(frozen=True)
class IntegratedCourseSummary:
    theory: CourseAttendanceSummary
    lab: CourseAttendanceSummary

    def to_dict(self) -> dict:
        return {"theory": self.theory.to_dict(), "lab": self.lab.to_dict()}


class AttendanceService:
    """Read side: list, summary and per-student attendance for a course."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        courses: CourseRepository,
        students: StudentRepository,
    ):
        self._attendance = attendance
        self._courses = courses
        self._students = students

    def get_course(self, course_id) -> CourseDescriptor:
        course = self._courses.get_by_id(require_id(course_id, "course ID"))
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _load_scoped(
        self,
        course: CourseDescriptor,
        record_filter: RecordFilter,
    ) -> dict[int, list[AttendanceRecord]]:
        docs = self._attendance.load_records(course.course_id, record_filter)
        merged = merge_documents(docs)
        return {
            student_id: eligible_records(records, integrated=course.is_integrated, component=record_filter.component)
            for student_id, records in merged.items()
        }

    @staticmethod
    def _split_required(course: CourseDescriptor, component: Optional[Component]) -> bool:
        return course.is_integrated and component is None

    def _sorted(self, reports: Sequence[StudentAttendanceReport]) -> list[StudentAttendanceReport]:
        return sorted(
            reports,
            key=lambda r: (r.student is None, r.student.registration_number if r.student else "", r.student_id),
        )

    def list_course_attendance(
        self,
        course_id,
        *,
        component=None,
        start_date=None,
        end_date=None,
        academic_year=None,
    ) -> list[StudentAttendanceReport]:
        course = self.get_course(course_id)
        record_filter = RecordFilter(
            component=require_component(component),
            start_date=parse_optional_day(start_date),
            end_date=parse_optional_day(end_date),
            academic_year=require_academic_year(academic_year),
        )
        if record_filter.start_date and record_filter.end_date and record_filter.end_date < record_filter.start_date:
            raise ValidationError("End date must be on or after start date")

        by_student = self._load_scoped(course, record_filter)
        students = self._students.get_many(by_student.keys())

        if self._split_required(course, record_filter.component):
            views = split_by_component(by_student)
            reports = [
                StudentAttendanceReport(
                    student_id=sid,
                    student=students.get(sid),
                    theory=aggregate_student(sid, views[Component.THEORY][sid]),
                    lab=aggregate_student(sid, views[Component.LAB][sid]),
                )
                for sid in by_student
            ]
        else:
            reports = [
                StudentAttendanceReport(
                    student_id=sid,
                    student=students.get(sid),
                    overall=aggregate_student(sid, records),
                )
                for sid, records in by_student.items()
            ]
        return self._sorted(reports)

    def get_summary(
        self,
        course_id,
        *,
        component=None,
        academic_year=None,
    ) -> Union[CourseAttendanceSummary, IntegratedCourseSummary]:
        course = self.get_course(course_id)
        record_filter = RecordFilter(
            component=require_component(component),
            academic_year=require_academic_year(academic_year),
        )
        by_student = self._load_scoped(course, record_filter)

        if self._split_required(course, record_filter.component):
            views = split_by_component(by_student)
            return IntegratedCourseSummary(
                theory=summarize_course(views[Component.THEORY]),
                lab=summarize_course(views[Component.LAB]),
            )
        return summarize_course(by_student)

    def get_student_attendance(
        self,
        course_id,
        student_id,
        *,
        component=None,
        academic_year=None,
    ) -> StudentAttendanceReport:
        course = self.get_course(course_id)
        sid = require_id(student_id, "student ID")
        component = require_component(component)

        docs = self._attendance.find_for_student(course.course_id, sid, require_academic_year(academic_year))
        if not docs:
            raise NotFoundError("Attendance record not found")

        records = eligible_records(
            merge_documents(docs).get(sid, []),
            integrated=course.is_integrated,
            component=component,
        )
        student = self._students.get_many([sid]).get(sid)
        years = sorted({d.academic_year for d in docs})

        if self._split_required(course, component):
            views: Mapping[Component, Mapping[int, list]] = split_by_component({sid: records})
            return StudentAttendanceReport(
                student_id=sid,
                student=student,
                theory=aggregate_student(sid, views[Component.THEORY][sid]),
                lab=aggregate_student(sid, views[Component.LAB][sid]),
                course=course,
                academic_years=years,
            )
        return StudentAttendanceReport(
            student_id=sid,
            student=student,
            overall=aggregate_student(sid, records),
            course=course,
            academic_years=years,
        )
