from __future__ import annotations

from datetime import time
from typing import Optional

from ..core.enums import DayOfWeek, ResourceAxis
from .model import ConflictReport
from .repository import TimetableRepository


def intervals_overlap(s1: time, e1: time, s2: time, e2: time) -> bool:
    """Half-open overlap: [08:00, 09:00) and [09:00, 10:00) do not touch."""

    return s1 < e2 and s2 < e1


class ResourceConflictChecker:
    """Detects double-booked rooms, lecturers and cohorts on the same weekday."""

    _FILTER_BY_AXIS = {
        ResourceAxis.ROOM: "room_id",
        ResourceAxis.INSTRUCTOR: "instructor_id",
        ResourceAxis.COHORT: "cohort_id",
    }

    def __init__(self, timetable: TimetableRepository):
        self._timetable = timetable

    def has_conflict(
        self,
        axis: ResourceAxis,
        resource_id: int,
        day: DayOfWeek,
        start: time,
        end: time,
        *,
        exclude_entry_id: Optional[int] = None,
    ) -> bool:
        filters = {self._FILTER_BY_AXIS[axis]: int(resource_id), "day": day}
        for entry in self._timetable.list_entries(**filters):
            if exclude_entry_id is not None and entry.entry_id == exclude_entry_id:
                continue
            if intervals_overlap(start, end, entry.start_time, entry.end_time):
                return True
        return False

    def check(
        self,
        *,
        day: DayOfWeek,
        start: time,
        end: time,
        room_id: Optional[int] = None,
        instructor_id: Optional[int] = None,
        cohort_id: Optional[int] = None,
        exclude_entry_id: Optional[int] = None,
    ) -> ConflictReport:
        def probe(axis: ResourceAxis, resource_id: Optional[int]) -> bool:
            if resource_id is None:
                return False
            return self.has_conflict(axis, resource_id, day, start, end, exclude_entry_id=exclude_entry_id)

        return ConflictReport(
            room=probe(ResourceAxis.ROOM, room_id),
            lecturer=probe(ResourceAxis.INSTRUCTOR, instructor_id),
            student_group=probe(ResourceAxis.COHORT, cohort_id),
        )
