from __future__ import annotations

from datetime import datetime

from src.course_attendance.course_attendance.attendance.model import AttendanceRecord
from src.course_attendance.course_attendance.attendance.session_key import session_key, time_slot_label
from src.course_attendance.course_attendance.core.enums import AttendanceStatus, Component


def _rec(when: datetime, start=None, end=None, component=None, status=AttendanceStatus.PRESENT) -> AttendanceRecord:
    return AttendanceRecord(date=when, status=status, component=component, start_time=start, end_time=end)


def test_key_format_with_slot_and_component():
    r = _rec(datetime(2024, 1, 10, 9, 0), "09:00", "10:00", Component.THEORY)
    assert session_key(r) == "2024-01-10_09:0010:00_theory"


def test_key_defaults_when_no_slot_or_component():
    r = _rec(datetime(2024, 1, 10))
    assert session_key(r) == "2024-01-10__default"


def test_key_ignores_time_of_day_and_status():
    morning = _rec(datetime(2024, 1, 10, 8, 15), "09:00", "10:00", Component.LAB)
    evening = _rec(datetime(2024, 1, 10, 23, 59), "09:00", "10:00", Component.LAB, status=AttendanceStatus.ABSENT)
    assert session_key(morning) == session_key(evening)


def test_key_canonicalizes_unpadded_times():
    padded = _rec(datetime(2024, 1, 10), "09:00", "10:00")
    loose = _rec(datetime(2024, 1, 10), " 9:00", "10:00 ")
    assert session_key(padded) == session_key(loose)


def test_different_slot_or_component_is_a_different_session():
    base = _rec(datetime(2024, 1, 10), "09:00", "10:00", Component.THEORY)
    other_slot = _rec(datetime(2024, 1, 10), "10:00", "11:00", Component.THEORY)
    other_component = _rec(datetime(2024, 1, 10), "09:00", "10:00", Component.LAB)
    assert len({session_key(base), session_key(other_slot), session_key(other_component)}) == 3


def test_time_slot_label():
    assert time_slot_label(_rec(datetime(2024, 1, 10), "9:00", "10:00")) == "09:00-10:00"
    assert time_slot_label(_rec(datetime(2024, 1, 10), "09:00", None)) is None
