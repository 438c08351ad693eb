from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.session_service import SessionMutationService
from .core.constants import DEFAULT_WRITE_WORKERS
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .database.connection import DBConfig, DatabaseConnection
from .settings.mysql_settings_repository import MySQLSystemSettingRepository
from .settings.repository import SystemSettingRepository
from .settings.service import SystemSettingService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    courses_repo: CourseRepository
    students_repo: StudentRepository
    settings_repo: SystemSettingRepository

    attendance_service: AttendanceService
    session_service: SessionMutationService
    settings_service: SystemSettingService


def assemble(
    *,
    attendance_repo: AttendanceRepository,
    courses_repo: CourseRepository,
    students_repo: StudentRepository,
    settings_repo: SystemSettingRepository,
    default_academic_year: str,
    write_workers: int = DEFAULT_WRITE_WORKERS,
) -> Container:
    """Wire services around any set of repositories (MySQL in the app, fakes in tests)."""

    settings_service = SystemSettingService(settings_repo)
    return Container(
        attendance_repo=attendance_repo,
        courses_repo=courses_repo,
        students_repo=students_repo,
        settings_repo=settings_repo,
        attendance_service=AttendanceService(attendance_repo, courses_repo, students_repo),
        session_service=SessionMutationService(
            attendance_repo,
            courses_repo,
            default_academic_year=default_academic_year,
            settings=settings_service,
            max_workers=write_workers,
        ),
        settings_service=settings_service,
    )


def build_container(*, db_config: dict, default_academic_year: str, write_workers: int = DEFAULT_WRITE_WORKERS) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        attendance_repo=MySQLAttendanceRepository(conn),
        courses_repo=MySQLCourseRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        settings_repo=MySQLSystemSettingRepository(conn),
        default_academic_year=default_academic_year,
        write_workers=write_workers,
    )
