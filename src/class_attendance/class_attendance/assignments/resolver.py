from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.enums import OpenerRole
from ..core.exceptions import ValidationError
from ..schedules.model import TimetableEntry
from .lookups.base import StaffLookup
from .lookups.chain import default_lookup_chain, resolve_through_chain
from .repository import AssignmentRepository, StaffDirectory

logger = logging.getLogger(__name__)


class AssignmentResolver:
    """Answers who may teach, and who may open sessions, for a course offering."""

    def __init__(
        self,
        assignments: AssignmentRepository,
        instructors: StaffDirectory,
        *,
        lookups: Optional[Sequence[StaffLookup]] = None,
    ):
        self._assignments = assignments
        self._instructors = instructors
        self._lookups = list(lookups) if lookups is not None else default_lookup_chain()

    def resolve_staff(self, directory: StaffDirectory, requested_id: int) -> Optional[int]:
        return resolve_through_chain(self._lookups, directory, requested_id)

    def resolve_instructor(self, *, course_id: int, period_id: int, requested: Optional[int] = None) -> int:
        if requested is not None:
            resolved = self.resolve_staff(self._instructors, int(requested))
            if resolved is None:
                raise ValidationError("invalid instructor id")
            if resolved != requested:
                logger.info("Instructor id %s resolved to account %s", requested, resolved)
            return resolved

        assignment = self._assignments.get_instructor_for(course_id=course_id, period_id=period_id)
        if assignment is None:
            raise ValidationError("no instructor assigned for this course/period")
        return assignment.user_id

    def resolve_assistants(self, *, course_id: int, period_id: int) -> set[int]:
        rows = self._assignments.list_assistants(course_id=course_id, period_id=period_id)
        return {a.user_id for a in rows}

    def role_for(self, identity: int, entry: TimetableEntry) -> Optional[OpenerRole]:
        if identity == entry.instructor_id:
            return OpenerRole.INSTRUCTOR
        if identity in self.resolve_assistants(course_id=entry.course_id, period_id=entry.period_id):
            return OpenerRole.ASSISTANT
        return None
