from __future__ import annotations

from typing import Optional, Protocol

from .model import CourseDescriptor


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[CourseDescriptor]:
        raise NotImplementedError
