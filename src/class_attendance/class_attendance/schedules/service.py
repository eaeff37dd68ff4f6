from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..assignments.resolver import AssignmentResolver
from ..catalog.repository import CatalogRepository
from ..cohorts.repository import CohortMembership
from ..common.datetime_utils import parse_hhmm
from ..common.validators import parse_identity, parse_optional_identity
from ..core.enums import DayOfWeek
from ..core.exceptions import NotFoundError, ValidationError
from .conflicts import ResourceConflictChecker
from .model import ConflictReport, SavedEntry, TimetableDraft, TimetableEntry
from .repository import TimetableRepository

logger = logging.getLogger(__name__)


def _parse_day(value: Any) -> DayOfWeek:
    day = DayOfWeek.parse(value if isinstance(value, str) else "")
    if day is None:
        raise ValidationError("Invalid day")
    return day


def _parse_capacity(value: Any) -> int:
    """Missing or non-positive capacity means "use the room's capacity"."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, bool):
        raise ValidationError("capacity must be a number")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("capacity must be a number")


def parse_draft(payload: Mapping[str, Any]) -> TimetableDraft:
    course_id = parse_identity(payload.get("course_id"), "course_id")
    room_id = parse_identity(payload.get("room_id"), "room_id")
    cohort_id = parse_identity(payload.get("cohort_id"), "cohort_id")
    period_id = parse_identity(payload.get("period_id"), "period_id")
    instructor_id = parse_optional_identity(payload.get("instructor_id"), "instructor_id")

    day = _parse_day(payload.get("day"))
    start = parse_hhmm(payload.get("start_time"), "start_time")
    end = parse_hhmm(payload.get("end_time"), "end_time")
    if end <= start:
        raise ValidationError("end_time must be after start_time")

    return TimetableDraft(
        course_id=course_id,
        room_id=room_id,
        cohort_id=cohort_id,
        period_id=period_id,
        day=day,
        start_time=start,
        end_time=end,
        capacity=_parse_capacity(payload.get("capacity")),
        instructor_id=instructor_id,
    )


class TimetableService:
    def __init__(
        self,
        timetable: TimetableRepository,
        catalog: CatalogRepository,
        cohorts: CohortMembership,
        resolver: AssignmentResolver,
        conflicts: ResourceConflictChecker,
    ):
        self._timetable = timetable
        self._catalog = catalog
        self._cohorts = cohorts
        self._resolver = resolver
        self._conflicts = conflicts

    def _prepare(self, payload: Mapping[str, Any], *, exclude_entry_id: Optional[int] = None):
        draft = parse_draft(payload)

        if not self._catalog.course_exists(draft.course_id):
            raise ValidationError("course not found")
        room_capacity = self._catalog.room_capacity(draft.room_id)
        if room_capacity is None:
            raise ValidationError("room not found")
        if not self._catalog.cohort_exists(draft.cohort_id):
            raise ValidationError("student group not found")
        if not self._catalog.period_exists(draft.period_id):
            raise ValidationError("academic period not found")

        duplicate = self._timetable.find_duplicate(
            course_id=draft.course_id,
            day=draft.day,
            start_time=draft.start_time,
            end_time=draft.end_time,
            period_id=draft.period_id,
            exclude_entry_id=exclude_entry_id,
        )
        if duplicate is not None:
            raise ValidationError("a schedule for this course at the same day and time already exists")

        instructor_id = self._resolver.resolve_instructor(
            course_id=draft.course_id, period_id=draft.period_id, requested=draft.instructor_id
        )
        capacity = draft.capacity if draft.capacity > 0 else room_capacity
        enrolled = self._cohorts.count(draft.cohort_id)

        report = self._conflicts.check(
            day=draft.day,
            start=draft.start_time,
            end=draft.end_time,
            room_id=draft.room_id,
            instructor_id=instructor_id,
            cohort_id=draft.cohort_id,
            exclude_entry_id=exclude_entry_id,
        )
        return draft, instructor_id, capacity, enrolled, report

    def create(self, payload: Mapping[str, Any]) -> SavedEntry:
        draft, instructor_id, capacity, enrolled, report = self._prepare(payload)
        entry_id = self._timetable.create(
            draft=draft, instructor_id=instructor_id, capacity=capacity, enrolled=enrolled
        )
        if report.any:
            logger.warning("Timetable entry %s saved with conflicts: %s", entry_id, report.warnings())
        return SavedEntry(entry=self.get(entry_id), conflicts=report)

    def update(self, entry_id: Any, payload: Mapping[str, Any]) -> SavedEntry:
        entry_id = parse_identity(entry_id, "entry_id")
        self.get(entry_id)

        draft, instructor_id, capacity, enrolled, report = self._prepare(payload, exclude_entry_id=entry_id)
        self._timetable.update(
            entry_id=entry_id, draft=draft, instructor_id=instructor_id, capacity=capacity, enrolled=enrolled
        )
        if report.any:
            logger.warning("Timetable entry %s updated with conflicts: %s", entry_id, report.warnings())
        return SavedEntry(entry=self.get(entry_id), conflicts=report)

    def delete(self, entry_id: Any, *, now: Optional[datetime] = None) -> None:
        entry_id = parse_identity(entry_id, "entry_id")
        if not self._timetable.soft_delete(entry_id=entry_id, deleted_at=now or datetime.now()):
            raise NotFoundError("schedule not found")

    def get(self, entry_id: Any) -> TimetableEntry:
        entry = self._timetable.get(parse_identity(entry_id, "entry_id"))
        if entry is None:
            raise NotFoundError("schedule not found")
        return entry

    def check_conflicts(self, payload: Mapping[str, Any]) -> ConflictReport:
        """Dry-run the conflict rules for a form that has not been saved yet."""

        day = _parse_day(payload.get("day"))
        start = parse_hhmm(payload.get("start_time"), "start_time")
        end = parse_hhmm(payload.get("end_time"), "end_time")
        if end <= start:
            raise ValidationError("end_time must be after start_time")

        instructor_id = parse_optional_identity(payload.get("instructor_id"), "instructor_id")
        course_id = parse_optional_identity(payload.get("course_id"), "course_id")
        period_id = parse_optional_identity(payload.get("period_id"), "period_id")
        if instructor_id is None and course_id is not None and period_id is not None:
            try:
                instructor_id = self._resolver.resolve_instructor(course_id=course_id, period_id=period_id)
            except ValidationError:
                instructor_id = None

        return self._conflicts.check(
            day=day,
            start=start,
            end=end,
            room_id=parse_optional_identity(payload.get("room_id"), "room_id"),
            instructor_id=instructor_id,
            cohort_id=parse_optional_identity(payload.get("cohort_id"), "cohort_id"),
            exclude_entry_id=parse_optional_identity(payload.get("entry_id"), "entry_id"),
        )

    def list_entries(
        self,
        *,
        course_id: Any = None,
        cohort_id: Any = None,
        room_id: Any = None,
        instructor_id: Any = None,
        period_id: Any = None,
    ) -> Sequence[TimetableEntry]:
        return self._timetable.list_entries(
            course_id=parse_optional_identity(course_id, "course_id"),
            cohort_id=parse_optional_identity(cohort_id, "cohort_id"),
            room_id=parse_optional_identity(room_id, "room_id"),
            instructor_id=parse_optional_identity(instructor_id, "instructor_id"),
            period_id=parse_optional_identity(period_id, "period_id"),
        )

    def list_for_student(self, student_id: Any) -> Sequence[TimetableEntry]:
        cohort_ids = self._cohorts.list_cohorts_for_student(parse_identity(student_id, "student_id"))
        if not cohort_ids:
            return []
        return self._timetable.list_entries(cohort_ids=cohort_ids)
