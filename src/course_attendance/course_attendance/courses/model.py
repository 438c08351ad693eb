from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import CourseType


@dataclass(frozen=True)
class CourseDescriptor:
    """The slice of a course the attendance engine needs."""

    course_id: int
    code: str
    name: str
    type: CourseType

    @property
    def is_integrated(self) -> bool:
        return self.type.is_integrated

    def to_dict(self) -> dict:
        return {"id": self.course_id, "code": self.code, "name": self.name, "type": self.type.value}
