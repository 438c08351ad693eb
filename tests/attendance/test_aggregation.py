from __future__ import annotations

from datetime import datetime

import pytest

from src.course_attendance.course_attendance.attendance.aggregation import (
    AttendanceStats,
    aggregate_student,
    compute_stats,
    dedupe_records,
    eligible_records,
    merge_documents,
    round_percentage,
    split_by_component,
    summarize_course,
)
from src.course_attendance.course_attendance.attendance.model import AttendanceDocument, AttendanceRecord
from src.course_attendance.course_attendance.core.enums import AttendanceStatus, Component

P = AttendanceStatus.PRESENT
A = AttendanceStatus.ABSENT


def _rec(day: int, status=P, start="09:00", end="10:00", component=None) -> AttendanceRecord:
    return AttendanceRecord(
        date=datetime(2024, 1, day), status=status, component=component, start_time=start, end_time=end
    )


def test_round_percentage_is_half_up():
    assert round_percentage(66.665) == 66.67
    assert round_percentage(2 / 3 * 100) == 66.67
    assert round_percentage(12.5) == 12.5


def test_empty_records_give_zero_percent():
    stats = compute_stats([])
    assert (stats.total_classes, stats.present_classes, stats.attendance_percentage) == (0, 0, 0.0)
    assert stats.below_threshold is True


@pytest.mark.parametrize(
    "statuses",
    [[P], [A], [P, A], [P, P, A, A, P], [A, A, A]],
)
def test_percentage_bounds(statuses):
    stats = compute_stats([_rec(i + 1, s) for i, s in enumerate(statuses)])
    assert 0 <= stats.present_classes <= stats.total_classes
    assert 0.0 <= stats.attendance_percentage <= 100.0


def test_duplicate_records_count_once():
    records = [_rec(10, P), _rec(10, P), _rec(11, A)]
    stats = compute_stats(records)
    assert stats.total_classes == 2
    assert stats.present_classes == 1
    assert stats.attendance_percentage == 50.0


def test_threshold_uses_unrounded_percentage():
    # 74.996 displays as 75.0 but is still below 75
    stats = AttendanceStats(total_classes=3, present_classes=2, percentage=74.996)
    assert stats.attendance_percentage == 75.0
    assert stats.below_threshold is True


def test_three_of_four_is_exactly_at_threshold():
    stats = compute_stats([_rec(1, P), _rec(2, P), _rec(3, P), _rec(4, A)])
    assert stats.attendance_percentage == 75.0
    assert stats.below_threshold is False


def test_dedupe_prefers_present_and_orders_by_day():
    records = [_rec(12, A), _rec(10, A), _rec(10, P)]
    out = dedupe_records(records)
    assert [r.date.day for r in out] == [10, 12]
    assert out[0].status == P


def test_merge_unions_documents_per_student():
    docs = [
        AttendanceDocument(1, 7, "2024-25", [_rec(10, P)]),
        AttendanceDocument(1, 7, "2023-24", [_rec(10, A), _rec(3, P)]),
        AttendanceDocument(1, 8, "2024-25", [_rec(10, A)]),
    ]
    merged = merge_documents(docs)
    assert list(merged) == [7, 8]
    assert len(merged[7]) == 3

    agg = aggregate_student(7, merged[7])
    assert agg.total_classes == 2
    assert agg.present_classes == 2
    assert len(agg.records) == 2


def test_merge_matches_single_document_view():
    split = [
        AttendanceDocument(1, 7, "2023-24", [_rec(1, P), _rec(2, A)]),
        AttendanceDocument(1, 7, "2024-25", [_rec(2, A), _rec(3, P)]),
    ]
    single = [AttendanceDocument(1, 7, "2024-25", [_rec(1, P), _rec(2, A), _rec(3, P)])]
    a = compute_stats(merge_documents(split)[7])
    b = compute_stats(merge_documents(single)[7])
    assert (a.total_classes, a.present_classes) == (b.total_classes, b.present_classes)


def test_eligible_records_drops_componentless_for_integrated():
    records = [_rec(1, component=Component.THEORY), _rec(2, component=Component.LAB), _rec(3)]
    assert len(eligible_records(records, integrated=True)) == 2
    assert len(eligible_records(records, integrated=False)) == 3
    assert [r.component for r in eligible_records(records, integrated=True, component=Component.LAB)] == [
        Component.LAB
    ]


def test_split_by_component_keeps_every_student():
    views = split_by_component({1: [_rec(1, component=Component.THEORY)]})
    assert len(views[Component.THEORY][1]) == 1
    assert views[Component.LAB][1] == []


def test_course_total_classes_is_a_set_not_a_sum():
    by_student = {
        1: [_rec(10, P), _rec(11, P)],
        2: [_rec(10, A), _rec(11, P)],
        3: [_rec(10, P)],
    }
    summary = summarize_course(by_student)
    assert summary.total_classes == 2
    assert summary.total_students == 3


def test_summary_average_and_below_threshold():
    by_student = {
        1: [_rec(10, P), _rec(11, P), _rec(12, A)],  # 66.666..
        2: [_rec(10, P), _rec(11, P), _rec(12, P)],  # 100
        3: [],
    }
    summary = summarize_course(by_student)
    assert summary.total_students == 2
    assert summary.below_threshold_count == 1
    assert summary.average_attendance == 83.33


def test_summary_sessions_grouped_by_date_and_slot():
    by_student = {
        1: [
            _rec(10, component=Component.THEORY),
            _rec(10, component=Component.LAB),
            _rec(10, start="11:00", end="12:00", component=Component.LAB),
            _rec(10, start=None, end=None, component=Component.LAB),
            _rec(9, component=Component.THEORY),
        ]
    }
    sessions = [s.to_dict() for s in summarize_course(by_student).attendance_sessions]
    assert sessions == [
        {"date": "2024-01-10", "timeSlot": "09:00-10:00", "components": ["lab", "theory"]},
        {"date": "2024-01-10", "timeSlot": "11:00-12:00", "components": ["lab"]},
        {"date": "2024-01-10", "timeSlot": None, "components": ["lab"]},
        {"date": "2024-01-09", "timeSlot": "09:00-10:00", "components": ["theory"]},
    ]


def test_empty_course_summary():
    summary = summarize_course({})
    assert summary.to_dict() == {
        "totalStudents": 0,
        "totalClasses": 0,
        "belowThresholdCount": 0,
        "averageAttendance": 0.0,
        "attendanceSessions": [],
    }
