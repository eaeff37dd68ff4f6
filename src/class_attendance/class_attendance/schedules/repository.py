from __future__ import annotations

from datetime import datetime, time
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import DayOfWeek
from .model import TimetableDraft, TimetableEntry


class TimetableRepository(Protocol):
    def get(self, entry_id: int) -> Optional[TimetableEntry]:
        """Return a live (not soft-deleted) entry."""

        raise NotImplementedError

    def create(self, *, draft: TimetableDraft, instructor_id: int, capacity: int, enrolled: int) -> int:
        raise NotImplementedError

    def update(
        self, *, entry_id: int, draft: TimetableDraft, instructor_id: int, capacity: int, enrolled: int
    ) -> bool:
        raise NotImplementedError

    def soft_delete(self, *, entry_id: int, deleted_at: datetime) -> bool:
        raise NotImplementedError

    def list_entries(
        self,
        *,
        course_id: Optional[int] = None,
        cohort_id: Optional[int] = None,
        room_id: Optional[int] = None,
        instructor_id: Optional[int] = None,
        period_id: Optional[int] = None,
        day: Optional[DayOfWeek] = None,
        cohort_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[TimetableEntry]:
        """List live entries matching every given filter."""

        raise NotImplementedError

    def find_duplicate(
        self,
        *,
        course_id: int,
        day: DayOfWeek,
        start_time: time,
        end_time: time,
        period_id: int,
        exclude_entry_id: Optional[int] = None,
    ) -> Optional[TimetableEntry]:
        raise NotImplementedError
