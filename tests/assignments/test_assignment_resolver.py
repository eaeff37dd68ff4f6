from __future__ import annotations

import pytest

from src.class_attendance.class_attendance.assignments.lookups.by_record_id import ByRecordIdLookup
from src.class_attendance.class_attendance.assignments.lookups.by_user_id import ByUserIdLookup
from src.class_attendance.class_attendance.assignments.resolver import AssignmentResolver
from src.class_attendance.class_attendance.core.enums import OpenerRole
from src.class_attendance.class_attendance.core.exceptions import ValidationError


def test_user_id_lookup_matches_account_only(world):
    lookup = ByUserIdLookup()

    assert lookup.find(world.lecturers, 5106) == 5106
    assert lookup.find(world.lecturers, 51) is None


def test_record_id_lookup_prefers_linked_account(world):
    lookup = ByRecordIdLookup()

    assert lookup.find(world.lecturers, 51) == 5106
    assert lookup.find(world.lecturers, 52) == 52
    assert lookup.find(world.lecturers, 5106) is None


def test_resolve_instructor_explicit_and_assigned(world):
    resolver = world.container.resolver

    assert resolver.resolve_instructor(course_id=10, period_id=3, requested=51) == 5106
    assert resolver.resolve_instructor(course_id=10, period_id=3) == 5106


def test_resolve_instructor_without_assignment(world):
    with pytest.raises(ValidationError):
        world.container.resolver.resolve_instructor(course_id=11, period_id=3)


def test_custom_lookup_chain_order(world):
    resolver = AssignmentResolver(world.assignments, world.lecturers, lookups=[ByRecordIdLookup()])

    with pytest.raises(ValidationError, match="invalid instructor id"):
        resolver.resolve_instructor(course_id=10, period_id=3, requested=5106)


def test_role_for(world):
    resolver = world.container.resolver
    entry = world.entry

    assert resolver.resolve_assistants(course_id=10, period_id=3) == {6001, 6002}
    assert resolver.role_for(5106, entry) == OpenerRole.INSTRUCTOR
    assert resolver.role_for(6001, entry) == OpenerRole.ASSISTANT
    assert resolver.role_for(6003, entry) is None
