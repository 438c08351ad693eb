from __future__ import annotations

from typing import Optional

from ..core.enums import CourseType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import CourseDescriptor
from .repository import CourseRepository


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, course_id: int) -> Optional[CourseDescriptor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, code, name, course_type FROM courses WHERE course_id=%s",
                (int(course_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return CourseDescriptor(
                course_id=int(r["course_id"]),
                code=r["code"],
                name=r["name"],
                type=CourseType(r["course_type"]),
            )
