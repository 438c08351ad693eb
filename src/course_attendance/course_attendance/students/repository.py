from __future__ import annotations

from typing import Iterable, Protocol

from .model import StudentInfo


class StudentRepository(Protocol):
    def get_many(self, student_ids: Iterable[int]) -> dict[int, StudentInfo]:
        """Students by id; unknown ids are simply absent from the result."""

        raise NotImplementedError
