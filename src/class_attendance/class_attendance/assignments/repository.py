from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AssistantAssignment, InstructorAssignment, StaffMember


class AssignmentRepository(Protocol):
    def get_instructor_for(self, *, course_id: int, period_id: int) -> Optional[InstructorAssignment]:
        raise NotImplementedError

    def find_instructor_pair(self, *, user_id: int, course_id: int) -> Optional[InstructorAssignment]:
        """Any instructor assignment for (user, course), regardless of period."""

        raise NotImplementedError

    def create_instructor(self, *, user_id: int, course_id: int, period_id: int) -> int:
        raise NotImplementedError

    def delete_instructor(self, *, assignment_id: int) -> bool:
        raise NotImplementedError

    def list_instructors(
        self, *, course_id: Optional[int] = None, period_id: Optional[int] = None
    ) -> Sequence[InstructorAssignment]:
        raise NotImplementedError

    def list_assistants(
        self, *, course_id: Optional[int] = None, period_id: Optional[int] = None
    ) -> Sequence[AssistantAssignment]:
        raise NotImplementedError

    def list_assistant_assignments_for_user(self, *, user_id: int) -> Sequence[AssistantAssignment]:
        raise NotImplementedError

    def find_assistant_pair(self, *, user_id: int, course_id: int) -> Optional[AssistantAssignment]:
        raise NotImplementedError

    def create_assistant(
        self, *, user_id: int, course_id: int, period_id: int, assigned_by: Optional[int] = None
    ) -> int:
        raise NotImplementedError

    def delete_assistant(self, *, assignment_id: int) -> bool:
        raise NotImplementedError


class StaffDirectory(Protocol):
    """Lecturer or employee directory, addressable by account id or by row id."""

    def get_by_user_id(self, user_id: int) -> Optional[StaffMember]:
        raise NotImplementedError

    def get_by_record_id(self, record_id: int) -> Optional[StaffMember]:
        raise NotImplementedError
