from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.class_attendance.class_attendance.attendance.model import SessionSettings
from src.class_attendance.class_attendance.core.enums import (
    OpenerRole,
    SessionStatus,
    StudentAttendanceStatus,
    VerificationType,
)
from src.class_attendance.class_attendance.core.exceptions import (
    AuthorizationError,
    DuplicateActiveSessionError,
    InstructorSessionExistsError,
    NotFoundError,
    SessionNotActiveError,
    ValidationError,
)


def _open(world, opener_id, fixed_now, **kwargs):
    kwargs.setdefault("verification_type", "QR_CODE")
    return world.container.session_manager.open(
        opener_id=opener_id, entry_id=world.entry.entry_id, now=fixed_now, **kwargs
    )


def test_instructor_opens_with_defaults_and_absent_roster(world, fixed_now):
    session = _open(world, 5106, fixed_now)

    assert session.opener_role == OpenerRole.INSTRUCTOR
    assert session.status == SessionStatus.ACTIVE
    assert session.session_date == fixed_now.date()
    assert session.start_time == fixed_now
    assert (session.auto_close, session.duration, session.allow_late, session.late_threshold) == (True, 15, True, 10)
    assert session.qr_token

    records = world.records.list_for_session(session.session_id)
    assert len(records) == 10
    assert {r.status for r in records} == {StudentAttendanceStatus.ABSENT}


def test_manual_session_has_no_qr_token(world, fixed_now):
    session = _open(world, 5106, fixed_now, verification_type="manual")

    assert session.verification_type == VerificationType.MANUAL
    assert session.qr_token is None


def test_settings_accept_numeric_strings_and_floats(world, fixed_now):
    session = _open(
        world, 5106, fixed_now, settings={"duration": "30", "lateThreshold": 5.0, "allowLate": False, "notes": " Lab "}
    )

    assert session.duration == 30
    assert session.late_threshold == 5
    assert session.allow_late is False
    assert session.notes == "Lab"


@pytest.mark.parametrize(
    "settings", [{"duration": 0}, {"lateThreshold": "ten"}, {"lateThreshold": -1}, {"duration": 2.5}, 5, ["duration"]]
)
def test_invalid_settings_are_rejected(world, fixed_now, settings):
    with pytest.raises(ValidationError):
        _open(world, 5106, fixed_now, settings=settings)


def test_unknown_entry_and_type(world, fixed_now):
    manager = world.container.session_manager

    with pytest.raises(NotFoundError):
        manager.open(opener_id=5106, entry_id=999, verification_type="QR_CODE", now=fixed_now)
    with pytest.raises(ValidationError):
        _open(world, 5106, fixed_now, verification_type="BLUETOOTH")


def test_unauthorized_opener_is_rejected(world, fixed_now):
    with pytest.raises(AuthorizationError):
        _open(world, 6003, fixed_now)
    assert world.sessions.sessions == {}


def test_same_opener_cannot_open_twice(world, fixed_now):
    _open(world, 5106, fixed_now)

    with pytest.raises(DuplicateActiveSessionError):
        _open(world, 5106, fixed_now)


def test_instructor_may_open_after_assistant(world, fixed_now):
    assistant_session = _open(world, 6001, fixed_now)
    instructor_session = _open(world, 5106, fixed_now)

    assert assistant_session.opener_role == OpenerRole.ASSISTANT
    assert instructor_session.opener_role == OpenerRole.INSTRUCTOR
    assert world.sessions.get(assistant_session.session_id).status == SessionStatus.ACTIVE


def test_assistant_blocked_by_instructor_session(world, fixed_now):
    _open(world, 5106, fixed_now)

    with pytest.raises(InstructorSessionExistsError):
        _open(world, 6001, fixed_now)


def test_second_assistant_blocked(world, fixed_now):
    _open(world, 6001, fixed_now)

    with pytest.raises(DuplicateActiveSessionError, match="assistant"):
        _open(world, 6002, fixed_now)


def test_other_date_is_independent(world, fixed_now):
    _open(world, 5106, fixed_now)
    other = _open(world, 5106, fixed_now, session_date="2025-03-10")

    assert other.session_date == date(2025, 3, 10)


def _race(world, monkeypatch, **winner):
    """Make a concurrent open land between arbitration and our insert."""

    sessions = world.sessions
    real_create = sessions.create

    def racing_create(**kwargs):
        monkeypatch.setattr(sessions, "create", real_create)
        real_create(**dict(kwargs, **winner))
        return real_create(**kwargs)

    monkeypatch.setattr(sessions, "create", racing_create)


def test_storage_race_between_assistants(world, fixed_now, monkeypatch):
    _race(world, monkeypatch, opener_id=6002, opener_role=OpenerRole.ASSISTANT)

    with pytest.raises(DuplicateActiveSessionError, match="Another assistant"):
        _open(world, 6001, fixed_now)
    assert len(world.sessions.sessions) == 1


def test_storage_race_with_instructor_withdraws_assistant_session(world, fixed_now, monkeypatch):
    _race(world, monkeypatch, opener_id=5106, opener_role=OpenerRole.INSTRUCTOR)

    with pytest.raises(InstructorSessionExistsError):
        _open(world, 6001, fixed_now)

    active = world.sessions.list_active(entry_id=world.entry.entry_id, session_date=fixed_now.date())
    assert [s.opener_id for s in active] == [5106]


def test_failed_roster_rows_do_not_block_open(world, fixed_now):
    world.records.fail_for = {1001, 1002}

    session = _open(world, 5106, fixed_now)

    assert session.status == SessionStatus.ACTIVE
    assert len(world.records.list_for_session(session.session_id)) == 8


def test_close_by_assistant_sets_end_time(world, fixed_now):
    session = _open(world, 5106, fixed_now)
    later = fixed_now + timedelta(minutes=50)

    closed = world.container.session_manager.close(session.session_id, actor_id=6002, now=later)

    assert closed.status == SessionStatus.CLOSED
    assert closed.end_time == later
    with pytest.raises(SessionNotActiveError):
        world.container.session_manager.close(session.session_id, actor_id=5106, now=later)


def test_close_by_stranger_rejected(world, fixed_now):
    session = _open(world, 5106, fixed_now)

    with pytest.raises(AuthorizationError):
        world.container.session_manager.close(session.session_id, actor_id=6003, now=fixed_now)


def test_cancel_only_by_opener(world, fixed_now):
    manager = world.container.session_manager
    session = _open(world, 6001, fixed_now)

    with pytest.raises(AuthorizationError):
        manager.cancel(session.session_id, actor_id=5106)

    canceled = manager.cancel(session.session_id, actor_id=6001)
    assert canceled.status == SessionStatus.CANCELED
    assert canceled.end_time is None
    with pytest.raises(SessionNotActiveError):
        manager.cancel(session.session_id, actor_id=6001)


def test_closed_slot_can_be_reopened(world, fixed_now):
    manager = world.container.session_manager
    first = _open(world, 5106, fixed_now)
    manager.close(first.session_id, actor_id=5106, now=fixed_now)

    second = _open(world, 5106, fixed_now)

    assert second.session_id != first.session_id


def test_session_details_counts(world, fixed_now):
    manager = world.container.session_manager
    session = _open(world, 5106, fixed_now)
    world.records.upsert(session_id=session.session_id, student_id=1001, status=StudentAttendanceStatus.PRESENT)
    world.records.upsert(session_id=session.session_id, student_id=1002, status=StudentAttendanceStatus.LATE)

    details = manager.get_session_details(session.session_id, actor_id=6001).to_dict()

    assert details["total_students"] == 10
    assert (details["present_count"], details["late_count"], details["absent_count"]) == (1, 1, 8)


def test_active_lists_for_staff_and_students(world, fixed_now):
    manager = world.container.session_manager
    session = _open(world, 5106, fixed_now)

    assert [s.session_id for s in manager.list_active_for_user(6002)] == [session.session_id]
    assert [s.session_id for s in manager.list_active_for_user(5106)] == [session.session_id]
    assert manager.list_active_for_user(6003) == []
    assert [s.session_id for s in manager.list_active_for_student(1005)] == [session.session_id]
    assert manager.list_active_for_student(2001) == []


def test_sessions_in_range(world, fixed_now):
    manager = world.container.session_manager
    session = _open(world, 5106, fixed_now)

    found = manager.list_sessions_in_range(5106, start="2025-03-01", end="2025-03-31")
    assert [s.session_id for s in found] == [session.session_id]
    assert manager.list_sessions_in_range(5106, start="2025-04-01", end="2025-04-30") == []
    with pytest.raises(ValidationError):
        manager.list_sessions_in_range(5106, start="2025-04-30", end="2025-04-01")


def test_qr_payload_uses_token(world, fixed_now):
    manager = world.container.session_manager
    session = _open(world, 5106, fixed_now)

    assert manager.qr_payload(session.session_id, actor_id=6001) == session.qr_token

    manual = _open(world, 5106, fixed_now, verification_type="MANUAL", session_date="2025-03-04")
    with pytest.raises(ValidationError):
        manager.qr_payload(manual.session_id, actor_id=5106)


def test_settings_object_passes_through(world, fixed_now):
    session = _open(world, 5106, fixed_now, settings=SessionSettings(late_threshold=20))

    assert session.late_threshold == 20


def test_zero_late_threshold_marks_any_later_check_in_late(world, fixed_now):
    session = _open(world, 5106, fixed_now, settings={"allowLate": True, "lateThreshold": 0})

    record = world.container.verifier.mark_via_qr(
        session.session_id,
        student_id=1001,
        raw_payload=session.qr_token,
        now=fixed_now + timedelta(minutes=1),
    )

    assert session.late_threshold == 0
    assert record.status == StudentAttendanceStatus.LATE
