from __future__ import annotations

from collections import defaultdict
from datetime import datetime, time
from typing import Optional, Sequence

from ..common.datetime_utils import day_window
from ..core.enums import AttendanceStatus, Component
from ..database.connection import DatabaseConnection
from ..database.mysql_base import and_where, db_cursor, fetchall, fetchone, in_placeholders, mysql_time_to_hhmm
from .model import AttendanceDocument, AttendanceRecord, RecordFilter, SessionFilter
from .repository import AttendanceRepository


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        date=r["record_date"],
        status=AttendanceStatus(r["status"]),
        component=Component(r["component"]) if r.get("component") else None,
        start_time=mysql_time_to_hhmm(r.get("start_time")),
        end_time=mysql_time_to_hhmm(r.get("end_time")),
        remarks=r.get("remarks"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _attach_records(self, cur, docs: list[AttendanceDocument], extra_where: str = "", params: tuple = ()) -> None:
        if not docs:
            return
        by_id = {d.document_id: d for d in docs}
        cur.execute(
            f"""
            SELECT document_id, record_date, start_time, end_time, status, component, remarks
            FROM attendance_records
            WHERE document_id IN ({in_placeholders(list(by_id))}) {extra_where}
            ORDER BY document_id ASC, position ASC
            """,
            tuple(by_id) + params,
        )
        grouped: dict[int, list[AttendanceRecord]] = defaultdict(list)
        for r in fetchall(cur):
            grouped[int(r["document_id"])].append(_to_record(r))
        for doc_id, doc in by_id.items():
            doc.records = grouped.get(doc_id, [])

    @staticmethod
    def _to_document(r: dict) -> AttendanceDocument:
        return AttendanceDocument(
            document_id=int(r["document_id"]),
            course_id=int(r["course_id"]),
            student_id=int(r["student_id"]),
            academic_year=r["academic_year"],
        )

    def load_records(self, course_id: int, record_filter: RecordFilter) -> Sequence[AttendanceDocument]:
        clauses = ["course_id=%s"]
        params: list[object] = [int(course_id)]
        if record_filter.academic_year:
            clauses.append("academic_year=%s")
            params.append(record_filter.academic_year)

        record_clauses: list[str] = []
        record_params: list[object] = []
        if record_filter.component is not None:
            record_clauses.append("component=%s")
            record_params.append(record_filter.component.value)
        if record_filter.start_date is not None:
            record_clauses.append("record_date >= %s")
            record_params.append(datetime.combine(record_filter.start_date, time.min))
        if record_filter.end_date is not None:
            record_clauses.append("record_date <= %s")
            record_params.append(datetime.combine(record_filter.end_date, time.max))
        extra = "".join(f" AND {c}" for c in record_clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT document_id, course_id, student_id, academic_year
                FROM attendance_documents
                WHERE {and_where(clauses)}
                ORDER BY student_id ASC, academic_year ASC
                """,
                tuple(params),
            )
            docs = [self._to_document(r) for r in fetchall(cur)]
            self._attach_records(cur, docs, extra, tuple(record_params))
            return docs

    def find_for_student(
        self,
        course_id: int,
        student_id: int,
        academic_year: Optional[str] = None,
    ) -> Sequence[AttendanceDocument]:
        clauses = ["course_id=%s", "student_id=%s"]
        params: list[object] = [int(course_id), int(student_id)]
        if academic_year:
            clauses.append("academic_year=%s")
            params.append(academic_year)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT document_id, course_id, student_id, academic_year
                FROM attendance_documents
                WHERE {and_where(clauses)}
                ORDER BY academic_year ASC
                """,
                tuple(params),
            )
            docs = [self._to_document(r) for r in fetchall(cur)]
            self._attach_records(cur, docs)
            return docs

    def find_or_create(self, course_id: int, student_id: int, academic_year: str) -> AttendanceDocument:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT document_id, course_id, student_id, academic_year
                FROM attendance_documents
                WHERE course_id=%s AND student_id=%s AND academic_year=%s
                """,
                (int(course_id), int(student_id), academic_year),
            )
            r = fetchone(cur)
            if not r:
                return AttendanceDocument(course_id=int(course_id), student_id=int(student_id), academic_year=academic_year)
            doc = self._to_document(r)
            self._attach_records(cur, [doc])
            return doc

    def save(self, document: AttendanceDocument) -> AttendanceDocument:
        return self.save_all([document])[0]

    def save_all(self, documents: Sequence[AttendanceDocument]) -> list[AttendanceDocument]:
        with db_cursor(self._conn_factory) as (_, cur):
            for document in documents:
                self._write(cur, document)
        return list(documents)

    @staticmethod
    def _write(cur, document: AttendanceDocument) -> None:
        if document.document_id is None:
            # Upsert so a racing writer for the same tuple reuses the row.
            cur.execute(
                """
                INSERT INTO attendance_documents(course_id, student_id, academic_year)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE document_id=LAST_INSERT_ID(document_id), updated_at=CURRENT_TIMESTAMP
                """,
                (document.course_id, document.student_id, document.academic_year),
            )
            document.document_id = int(cur.lastrowid)
        else:
            cur.execute(
                "UPDATE attendance_documents SET updated_at=CURRENT_TIMESTAMP WHERE document_id=%s",
                (document.document_id,),
            )

        cur.execute("DELETE FROM attendance_records WHERE document_id=%s", (document.document_id,))
        if document.records:
            cur.executemany(
                """
                INSERT INTO attendance_records(
                    document_id, position, record_date, start_time, end_time, status, component, remarks
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (
                        document.document_id,
                        pos,
                        rec.date,
                        rec.start_time,
                        rec.end_time,
                        rec.status.value,
                        rec.component.value if rec.component else None,
                        rec.remarks,
                    )
                    for pos, rec in enumerate(document.records)
                ],
            )

    def bulk_delete_matching(self, course_id: int, session_filter: SessionFilter) -> int:
        start, end = day_window(session_filter.day)
        clauses = ["d.course_id=%s", "r.record_date BETWEEN %s AND %s"]
        params: list[object] = [int(course_id), start, end]
        if session_filter.start_time is not None:
            clauses.append("r.start_time=%s")
            params.append(session_filter.start_time)
        if session_filter.end_time is not None:
            clauses.append("r.end_time=%s")
            params.append(session_filter.end_time)
        if session_filter.component is not None:
            clauses.append("r.component=%s")
            params.append(session_filter.component.value)
        where = and_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(DISTINCT r.document_id) AS modified
                FROM attendance_records r
                JOIN attendance_documents d ON d.document_id = r.document_id
                WHERE {where}
                """,
                tuple(params),
            )
            row = fetchone(cur)
            modified = int(row["modified"]) if row else 0
            if modified:
                cur.execute(
                    f"""
                    DELETE r FROM attendance_records r
                    JOIN attendance_documents d ON d.document_id = r.document_id
                    WHERE {where}
                    """,
                    tuple(params),
                )
            return modified
