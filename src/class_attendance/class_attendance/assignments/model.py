from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class InstructorAssignment:
    """The lecturer responsible for a course in one academic period."""

    assignment_id: int
    user_id: int
    course_id: int
    period_id: int


@dataclass(frozen=True)
class AssistantAssignment:
    """A teaching assistant attached to a course in one academic period."""

    assignment_id: int
    user_id: int
    course_id: int
    period_id: int
    assigned_by: Optional[int] = None


@dataclass(frozen=True)
class StaffMember:
    """Directory row for a lecturer or employee.

    `user_id` is the external account id; it is 0 when the directory row has not
    been linked to an account yet.
    """

    record_id: int
    user_id: int
    full_name: Optional[str] = None
