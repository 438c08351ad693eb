from __future__ import annotations

from typing import Iterable

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_placeholders
from .model import StudentInfo
from .repository import StudentRepository


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_many(self, student_ids: Iterable[int]) -> dict[int, StudentInfo]:
        ids = sorted({int(s) for s in student_ids})
        if not ids:
            return {}

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, registration_number, name, program
                FROM students
                WHERE student_id IN ({in_placeholders(ids)})
                """,
                tuple(ids),
            )
            return {
                int(r["student_id"]): StudentInfo(
                    student_id=int(r["student_id"]),
                    registration_number=r["registration_number"],
                    name=r["name"],
                    program=r.get("program"),
                )
                for r in fetchall(cur)
            }
