from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceDocument, RecordFilter, SessionFilter


class AttendanceRepository(Protocol):
    """Record store for per-(course, student, academic year) documents.

    Services depend on this interface, not on a concrete database.
    """

    def load_records(self, course_id: int, record_filter: RecordFilter) -> Sequence[AttendanceDocument]:
        """Documents of the course, narrowed by academic year.

        Embedded records are narrowed by component and calendar-day range;
        documents left with no records are still returned.
        """

        raise NotImplementedError

    def find_for_student(
        self,
        course_id: int,
        student_id: int,
        academic_year: Optional[str] = None,
    ) -> Sequence[AttendanceDocument]:
        raise NotImplementedError

    def find_or_create(self, course_id: int, student_id: int, academic_year: str) -> AttendanceDocument:
        """Existing document, or a new empty one that is NOT persisted yet."""

        raise NotImplementedError

    def save(self, document: AttendanceDocument) -> AttendanceDocument:
        raise NotImplementedError

    def save_all(self, documents: Sequence[AttendanceDocument]) -> list[AttendanceDocument]:
        """Persist several documents; safe to call concurrently for disjoint students."""

        raise NotImplementedError

    def bulk_delete_matching(self, course_id: int, session_filter: SessionFilter) -> int:
        """Remove matching records under the course; return documents modified."""

        raise NotImplementedError
