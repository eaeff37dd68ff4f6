from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..catalog.repository import CatalogRepository
from ..common.validators import parse_identity, parse_optional_identity
from ..core.exceptions import DuplicateAssignmentError, NotFoundError, ValidationError
from .model import AssistantAssignment, InstructorAssignment
from .repository import AssignmentRepository, StaffDirectory
from .resolver import AssignmentResolver

logger = logging.getLogger(__name__)


class AssignmentService:
    def __init__(
        self,
        assignments: AssignmentRepository,
        resolver: AssignmentResolver,
        instructors: StaffDirectory,
        employees: StaffDirectory,
        catalog: CatalogRepository,
    ):
        self._assignments = assignments
        self._resolver = resolver
        self._instructors = instructors
        self._employees = employees
        self._catalog = catalog

    def _check_offering(self, course_id: int, period_id: int) -> None:
        if not self._catalog.course_exists(course_id):
            raise ValidationError("course not found")
        if not self._catalog.period_exists(period_id):
            raise ValidationError("academic period not found")

    def assign_instructor(self, *, user_id: Any, course_id: Any, period_id: Any) -> InstructorAssignment:
        requested = parse_identity(user_id, "user_id")
        course_id = parse_identity(course_id, "course_id")
        period_id = parse_identity(period_id, "period_id")
        self._check_offering(course_id, period_id)

        resolved = self._resolver.resolve_staff(self._instructors, requested)
        if resolved is None:
            raise ValidationError("invalid instructor id")

        if self._assignments.get_instructor_for(course_id=course_id, period_id=period_id):
            raise DuplicateAssignmentError("course already has an instructor for this period")
        if self._assignments.find_instructor_pair(user_id=resolved, course_id=course_id):
            raise DuplicateAssignmentError("instructor is already assigned to this course")

        assignment_id = self._assignments.create_instructor(
            user_id=resolved, course_id=course_id, period_id=period_id
        )
        logger.info("Assigned instructor %s to course %s period %s", resolved, course_id, period_id)
        return InstructorAssignment(
            assignment_id=assignment_id, user_id=resolved, course_id=course_id, period_id=period_id
        )

    def assign_assistant(
        self, *, user_id: Any, course_id: Any, period_id: Any, assigned_by: Any = None
    ) -> AssistantAssignment:
        requested = parse_identity(user_id, "user_id")
        course_id = parse_identity(course_id, "course_id")
        period_id = parse_identity(period_id, "period_id")
        assigned_by = parse_optional_identity(assigned_by, "assigned_by")
        self._check_offering(course_id, period_id)

        resolved = self._resolver.resolve_staff(self._employees, requested)
        if resolved is None:
            raise ValidationError("invalid assistant id")

        if self._assignments.find_assistant_pair(user_id=resolved, course_id=course_id):
            raise DuplicateAssignmentError("assistant is already assigned to this course")

        assignment_id = self._assignments.create_assistant(
            user_id=resolved, course_id=course_id, period_id=period_id, assigned_by=assigned_by
        )
        logger.info("Assigned assistant %s to course %s period %s", resolved, course_id, period_id)
        return AssistantAssignment(
            assignment_id=assignment_id,
            user_id=resolved,
            course_id=course_id,
            period_id=period_id,
            assigned_by=assigned_by,
        )

    def remove_instructor_assignment(self, assignment_id: Any) -> None:
        if not self._assignments.delete_instructor(assignment_id=parse_identity(assignment_id, "assignment_id")):
            raise NotFoundError("instructor assignment not found")

    def remove_assistant_assignment(self, assignment_id: Any) -> None:
        if not self._assignments.delete_assistant(assignment_id=parse_identity(assignment_id, "assignment_id")):
            raise NotFoundError("assistant assignment not found")

    def list_instructor_assignments(
        self, *, course_id: Optional[Any] = None, period_id: Optional[Any] = None
    ) -> Sequence[InstructorAssignment]:
        return self._assignments.list_instructors(
            course_id=parse_optional_identity(course_id, "course_id"),
            period_id=parse_optional_identity(period_id, "period_id"),
        )

    def list_assistant_assignments(
        self, *, course_id: Optional[Any] = None, period_id: Optional[Any] = None
    ) -> Sequence[AssistantAssignment]:
        return self._assignments.list_assistants(
            course_id=parse_optional_identity(course_id, "course_id"),
            period_id=parse_optional_identity(period_id, "period_id"),
        )
