from __future__ import annotations

from typing import Optional, Protocol


class CatalogRepository(Protocol):
    """Read-only view of academic reference data managed elsewhere."""

    def course_exists(self, course_id: int) -> bool:
        raise NotImplementedError

    def room_capacity(self, room_id: int) -> Optional[int]:
        """Return the room's seat count, or None when the room does not exist."""

        raise NotImplementedError

    def cohort_exists(self, cohort_id: int) -> bool:
        raise NotImplementedError

    def period_exists(self, period_id: int) -> bool:
        raise NotImplementedError
