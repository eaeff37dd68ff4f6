from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Any, Optional

from ..common.datetime_utils import format_hhmm
from ..core.enums import DayOfWeek


@dataclass(frozen=True)
class TimetableEntry:
    """A recurring weekly class slot for one course, room and cohort."""

    entry_id: int
    course_id: int
    room_id: int
    cohort_id: int
    instructor_id: int
    period_id: int
    day: DayOfWeek
    start_time: time
    end_time: time
    capacity: int
    enrolled: int = 0
    deleted_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "course_id": self.course_id,
            "room_id": self.room_id,
            "cohort_id": self.cohort_id,
            "instructor_id": self.instructor_id,
            "period_id": self.period_id,
            "day": self.day.value,
            "start_time": format_hhmm(self.start_time),
            "end_time": format_hhmm(self.end_time),
            "capacity": self.capacity,
            "enrolled": self.enrolled,
        }


@dataclass(frozen=True)
class TimetableDraft:
    """Validated create/update input, before the instructor is resolved."""

    course_id: int
    room_id: int
    cohort_id: int
    period_id: int
    day: DayOfWeek
    start_time: time
    end_time: time
    capacity: int = 0
    instructor_id: Optional[int] = None


@dataclass(frozen=True)
class ConflictReport:
    """Which resources overlap with an existing entry. Never blocks a write."""

    room: bool = False
    lecturer: bool = False
    student_group: bool = False

    @property
    def has_blocking_conflict(self) -> bool:
        return False

    @property
    def any(self) -> bool:
        return self.room or self.lecturer or self.student_group

    def warnings(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.room:
            out["room_conflict_warning"] = "The room is already booked at this time"
        if self.lecturer:
            out["lecturer_conflict_warning"] = "The lecturer already teaches at this time"
        if self.student_group:
            out["student_group_conflict_warning"] = "The student group already has a class at this time"
        return out

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "conflicts": {
                "room": self.room,
                "lecturer": self.lecturer,
                "student_group": self.student_group,
            },
            "has_blocking_conflict": self.has_blocking_conflict,
        }
        payload.update(self.warnings())
        if self.any:
            payload["message"] = "Schedule conflicts detected; the entry can still be saved"
        else:
            payload["message"] = "No schedule conflicts"
        return payload


@dataclass(frozen=True)
class SavedEntry:
    """Result of a create/update: the stored entry plus the informational report."""

    entry: TimetableEntry
    conflicts: ConflictReport

    def to_dict(self) -> dict[str, Any]:
        payload = self.entry.to_dict()
        payload.update(self.conflicts.to_dict())
        return payload
