from __future__ import annotations

from datetime import time

import pytest

from src.class_attendance.class_attendance.core.enums import DayOfWeek, ResourceAxis
from src.class_attendance.class_attendance.schedules.conflicts import ResourceConflictChecker, intervals_overlap


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((time(8, 0), time(9, 40)), (time(9, 0), time(10, 0)), True),
        ((time(8, 0), time(9, 0)), (time(9, 0), time(10, 0)), False),
        ((time(8, 0), time(12, 0)), (time(9, 0), time(10, 0)), True),
        ((time(13, 0), time(14, 0)), (time(8, 0), time(9, 0)), False),
    ],
)
def test_intervals_overlap_is_half_open_and_symmetric(a, b, expected):
    assert intervals_overlap(a[0], a[1], b[0], b[1]) is expected
    assert intervals_overlap(b[0], b[1], a[0], a[1]) is expected


def test_entry_overlaps_itself_unless_excluded(world):
    checker = ResourceConflictChecker(world.timetable)
    e = world.entry

    assert checker.has_conflict(ResourceAxis.ROOM, e.room_id, e.day, e.start_time, e.end_time)
    assert not checker.has_conflict(
        ResourceAxis.ROOM, e.room_id, e.day, e.start_time, e.end_time, exclude_entry_id=e.entry_id
    )


def test_axes_are_checked_independently(world):
    checker = ResourceConflictChecker(world.timetable)

    report = checker.check(
        day=DayOfWeek.MONDAY,
        start=time(9, 0),
        end=time(10, 0),
        room_id=2,
        instructor_id=5106,
        cohort_id=8,
    )

    assert report.room is False
    assert report.lecturer is True
    assert report.student_group is False
    assert report.has_blocking_conflict is False


def test_other_day_and_deleted_entries_never_conflict(world, fixed_now):
    checker = ResourceConflictChecker(world.timetable)
    assert not checker.has_conflict(ResourceAxis.ROOM, 1, DayOfWeek.TUESDAY, time(8, 0), time(9, 0))

    world.timetable.soft_delete(entry_id=world.entry.entry_id, deleted_at=fixed_now)
    assert not checker.has_conflict(ResourceAxis.ROOM, 1, DayOfWeek.MONDAY, time(8, 0), time(9, 0))


def test_report_payload_shape():
    from src.class_attendance.class_attendance.schedules.model import ConflictReport

    payload = ConflictReport(room=True).to_dict()

    assert payload["conflicts"] == {"room": True, "lecturer": False, "student_group": False}
    assert payload["has_blocking_conflict"] is False
    assert "room_conflict_warning" in payload
    assert "lecturer_conflict_warning" not in payload
