from __future__ import annotations

from datetime import datetime

import pytest

from conftest import DEFAULT_YEAR, INTEGRATED_COURSE, PG_COURSE
from src.course_attendance.course_attendance.attendance.model import AttendanceDocument, AttendanceRecord
from src.course_attendance.course_attendance.core.enums import AttendanceStatus, Component
from src.course_attendance.course_attendance.core.exceptions import NotFoundError, ValidationError

P = AttendanceStatus.PRESENT
A = AttendanceStatus.ABSENT


def _rec(day: int, status=P, component=None, start="09:00", end="10:00") -> AttendanceRecord:
    return AttendanceRecord(
        date=datetime(2024, 1, day), status=status, component=component, start_time=start, end_time=end
    )


@pytest.fixture()
def seeded(attendance_repo):
    attendance_repo.save(AttendanceDocument(PG_COURSE, 1, DEFAULT_YEAR, [_rec(10, P), _rec(11, A), _rec(12, P)]))
    attendance_repo.save(AttendanceDocument(PG_COURSE, 2, DEFAULT_YEAR, [_rec(10, P), _rec(11, P)]))
    attendance_repo.save(AttendanceDocument(PG_COURSE, 2, "2023-24", [_rec(3, A)]))
    return attendance_repo


def test_list_is_sorted_by_registration_number(attendance_service, seeded):
    reports = attendance_service.list_course_attendance(PG_COURSE)
    assert [r.student.registration_number for r in reports] == ["PG2024001", "PG2024002"]

    by_id = {r.student_id: r for r in reports}
    assert by_id[1].overall.attendance_percentage == 66.67
    assert by_id[1].overall.below_threshold is True
    # two documents merged for student 2
    assert by_id[2].overall.total_classes == 3
    assert by_id[2].overall.present_classes == 2


def test_list_filters_by_date_range(attendance_service, seeded):
    reports = attendance_service.list_course_attendance(PG_COURSE, start_date="2024-01-11", end_date="2024-01-11")
    assert {r.student_id: r.overall.total_classes for r in reports} == {1: 1, 2: 1}


def test_list_rejects_inverted_range(attendance_service, seeded):
    with pytest.raises(ValidationError):
        attendance_service.list_course_attendance(PG_COURSE, start_date="2024-01-12", end_date="2024-01-10")


def test_academic_year_pins_documents(attendance_service, seeded):
    reports = attendance_service.list_course_attendance(PG_COURSE, academic_year="2023-24")
    assert [(r.student_id, r.overall.total_classes) for r in reports] == [(2, 1)]


def test_list_to_dict_shape(attendance_service, seeded):
    body = attendance_service.list_course_attendance(PG_COURSE)[0].to_dict()
    assert body["studentId"] == 2
    assert body["student"]["registrationNumber"] == "PG2024001"
    assert {"records", "totalClasses", "presentClasses", "attendancePercentage", "belowThreshold"} <= set(body)
    assert body["records"][0]["date"] == "2024-01-03T00:00:00"


def test_summary_counts_students_with_records(attendance_service, seeded):
    summary = attendance_service.get_summary(PG_COURSE)
    assert summary.total_students == 2
    assert summary.total_classes == 4
    assert summary.below_threshold_count == 2


def test_integrated_course_ignores_records_without_component(attendance_service, attendance_repo):
    attendance_repo.save(
        AttendanceDocument(
            INTEGRATED_COURSE,
            1,
            DEFAULT_YEAR,
            [_rec(10, P, Component.THEORY), _rec(10, A, Component.LAB), _rec(11, A)],
        )
    )
    (report,) = attendance_service.list_course_attendance(INTEGRATED_COURSE)
    body = report.to_dict()
    assert body["theory"]["totalClasses"] == 1
    assert body["theory"]["attendancePercentage"] == 100.0
    assert body["lab"]["attendancePercentage"] == 0.0
    assert "attendancePercentage" not in body

    (lab_only,) = attendance_service.list_course_attendance(INTEGRATED_COURSE, component="lab")
    assert lab_only.overall.total_classes == 1


def test_student_attendance(attendance_service, seeded):
    report = attendance_service.get_student_attendance(PG_COURSE, "2")
    assert report.academic_years == ["2023-24", DEFAULT_YEAR]
    assert report.course.code == "CS501"
    body = report.to_dict()
    assert body["course"] == {"id": 1, "code": "CS501", "name": "Advanced Algorithms", "type": "PG"}
    assert body["totalClasses"] == 3


def test_student_attendance_not_found(attendance_service, seeded):
    with pytest.raises(NotFoundError, match="Attendance record not found"):
        attendance_service.get_student_attendance(PG_COURSE, 3)
    with pytest.raises(ValidationError):
        attendance_service.get_student_attendance(PG_COURSE, "x")


def test_unknown_course_on_reads(attendance_service):
    with pytest.raises(NotFoundError, match="Course not found"):
        attendance_service.get_summary(42)
