from __future__ import annotations

from typing import Protocol, Sequence


class CohortMembership(Protocol):
    """Answers which students belong to a cohort (student group)."""

    def list_students(self, cohort_id: int) -> Sequence[int]:
        raise NotImplementedError

    def is_member(self, cohort_id: int, student_id: int) -> bool:
        raise NotImplementedError

    def count(self, cohort_id: int) -> int:
        raise NotImplementedError

    def list_cohorts_for_student(self, student_id: int) -> Sequence[int]:
        raise NotImplementedError
