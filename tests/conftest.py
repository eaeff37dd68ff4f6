from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, time
from typing import Iterable, Optional

import pytest

from src.class_attendance.class_attendance.assignments.model import (
    AssistantAssignment,
    InstructorAssignment,
    StaffMember,
)
from src.class_attendance.class_attendance.attendance.model import (
    AttendanceHistoryRow,
    AttendanceSession,
    SessionSettings,
    StudentAttendanceRecord,
)
from src.class_attendance.class_attendance.container import Container, wire_container
from src.class_attendance.class_attendance.core.enums import (
    DayOfWeek,
    SessionStatus,
    StudentAttendanceStatus,
)
from src.class_attendance.class_attendance.core.exceptions import DuplicateActiveSessionError
from src.class_attendance.class_attendance.schedules.model import TimetableDraft, TimetableEntry

COURSE = 10
PERIOD = 3
ROOM_R1 = 1
ROOM_R2 = 2
COHORT = 7
OTHER_COHORT = 8
INSTRUCTOR = 5106
ASSISTANT_A = 6001
ASSISTANT_B = 6002
STUDENTS = list(range(1001, 1011))


@dataclass
class InMemoryCatalog:
    courses: set[int] = field(default_factory=set)
    rooms: dict[int, int] = field(default_factory=dict)
    cohorts: set[int] = field(default_factory=set)
    periods: set[int] = field(default_factory=set)

    def course_exists(self, course_id: int) -> bool:
        return course_id in self.courses

    def room_capacity(self, room_id: int) -> Optional[int]:
        return self.rooms.get(room_id)

    def cohort_exists(self, cohort_id: int) -> bool:
        return cohort_id in self.cohorts

    def period_exists(self, period_id: int) -> bool:
        return period_id in self.periods


@dataclass
class InMemoryCohorts:
    members: dict[int, list[int]] = field(default_factory=dict)

    def list_students(self, cohort_id: int):
        return list(self.members.get(cohort_id, []))

    def is_member(self, cohort_id: int, student_id: int) -> bool:
        return student_id in self.members.get(cohort_id, [])

    def count(self, cohort_id: int) -> int:
        return len(self.members.get(cohort_id, []))

    def list_cohorts_for_student(self, student_id: int):
        return sorted(c for c, students in self.members.items() if student_id in students)


@dataclass
class InMemoryStaffDirectory:
    members: list[StaffMember] = field(default_factory=list)

    def get_by_user_id(self, user_id: int) -> Optional[StaffMember]:
        return next((m for m in self.members if m.user_id and m.user_id == user_id), None)

    def get_by_record_id(self, record_id: int) -> Optional[StaffMember]:
        return next((m for m in self.members if m.record_id == record_id), None)


class InMemoryAssignments:
    def __init__(self):
        self._next_id = 1
        self.instructors: dict[int, InstructorAssignment] = {}
        self.assistants: dict[int, AssistantAssignment] = {}

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def get_instructor_for(self, *, course_id, period_id):
        return next(
            (a for a in self.instructors.values() if a.course_id == course_id and a.period_id == period_id), None
        )

    def find_instructor_pair(self, *, user_id, course_id):
        return next(
            (a for a in self.instructors.values() if a.user_id == user_id and a.course_id == course_id), None
        )

    def create_instructor(self, *, user_id, course_id, period_id):
        aid = self._new_id()
        self.instructors[aid] = InstructorAssignment(aid, user_id, course_id, period_id)
        return aid

    def delete_instructor(self, *, assignment_id):
        return self.instructors.pop(assignment_id, None) is not None

    def list_instructors(self, *, course_id=None, period_id=None):
        return [
            a
            for a in self.instructors.values()
            if (course_id is None or a.course_id == course_id) and (period_id is None or a.period_id == period_id)
        ]

    def list_assistants(self, *, course_id=None, period_id=None):
        return [
            a
            for a in self.assistants.values()
            if (course_id is None or a.course_id == course_id) and (period_id is None or a.period_id == period_id)
        ]

    def list_assistant_assignments_for_user(self, *, user_id):
        return [a for a in self.assistants.values() if a.user_id == user_id]

    def find_assistant_pair(self, *, user_id, course_id):
        return next(
            (a for a in self.assistants.values() if a.user_id == user_id and a.course_id == course_id), None
        )

    def create_assistant(self, *, user_id, course_id, period_id, assigned_by=None):
        aid = self._new_id()
        self.assistants[aid] = AssistantAssignment(aid, user_id, course_id, period_id, assigned_by)
        return aid

    def delete_assistant(self, *, assignment_id):
        return self.assistants.pop(assignment_id, None) is not None


class InMemoryTimetable:
    def __init__(self):
        self._next_id = 1
        self.entries: dict[int, TimetableEntry] = {}

    def add(self, **kwargs) -> TimetableEntry:
        entry_id = kwargs.pop("entry_id", None) or self._next_id
        self._next_id = max(self._next_id, entry_id) + 1
        entry = TimetableEntry(entry_id=entry_id, **kwargs)
        self.entries[entry_id] = entry
        return entry

    def get(self, entry_id):
        entry = self.entries.get(entry_id)
        return entry if entry and entry.deleted_at is None else None

    def create(self, *, draft: TimetableDraft, instructor_id, capacity, enrolled):
        return self.add(
            course_id=draft.course_id,
            room_id=draft.room_id,
            cohort_id=draft.cohort_id,
            instructor_id=instructor_id,
            period_id=draft.period_id,
            day=draft.day,
            start_time=draft.start_time,
            end_time=draft.end_time,
            capacity=capacity,
            enrolled=enrolled,
        ).entry_id

    def update(self, *, entry_id, draft: TimetableDraft, instructor_id, capacity, enrolled):
        if self.get(entry_id) is None:
            return False
        self.entries[entry_id] = TimetableEntry(
            entry_id=entry_id,
            course_id=draft.course_id,
            room_id=draft.room_id,
            cohort_id=draft.cohort_id,
            instructor_id=instructor_id,
            period_id=draft.period_id,
            day=draft.day,
            start_time=draft.start_time,
            end_time=draft.end_time,
            capacity=capacity,
            enrolled=enrolled,
        )
        return True

    def soft_delete(self, *, entry_id, deleted_at):
        entry = self.get(entry_id)
        if entry is None:
            return False
        self.entries[entry_id] = replace(entry, deleted_at=deleted_at)
        return True

    def list_entries(
        self,
        *,
        course_id=None,
        cohort_id=None,
        room_id=None,
        instructor_id=None,
        period_id=None,
        day=None,
        cohort_ids: Optional[Iterable[int]] = None,
    ):
        wanted = set(cohort_ids) if cohort_ids is not None else None
        out = []
        for e in self.entries.values():
            if e.deleted_at is not None:
                continue
            if course_id is not None and e.course_id != course_id:
                continue
            if cohort_id is not None and e.cohort_id != cohort_id:
                continue
            if room_id is not None and e.room_id != room_id:
                continue
            if instructor_id is not None and e.instructor_id != instructor_id:
                continue
            if period_id is not None and e.period_id != period_id:
                continue
            if day is not None and e.day != day:
                continue
            if wanted is not None and e.cohort_id not in wanted:
                continue
            out.append(e)
        return out

    def find_duplicate(self, *, course_id, day, start_time, end_time, period_id, exclude_entry_id=None):
        for e in self.list_entries(course_id=course_id, period_id=period_id, day=day):
            if e.entry_id == exclude_entry_id:
                continue
            if e.start_time == start_time and e.end_time == end_time:
                return e
        return None


class InMemorySessions:
    """Mirrors the storage rule: one ACTIVE session per (entry, date, opener role)."""

    def __init__(self):
        self._next_id = 1
        self.sessions: dict[int, AttendanceSession] = {}

    def get(self, session_id):
        return self.sessions.get(session_id)

    def list_active(self, *, entry_id, session_date):
        return [
            s
            for s in self.sessions.values()
            if s.entry_id == entry_id and s.session_date == session_date and s.status == SessionStatus.ACTIVE
        ]

    def create(
        self,
        *,
        entry_id,
        opener_id,
        opener_role,
        session_date,
        start_time,
        verification_type,
        settings: SessionSettings,
        qr_token=None,
    ):
        for s in self.list_active(entry_id=entry_id, session_date=session_date):
            if s.opener_role == opener_role:
                raise DuplicateActiveSessionError("duplicate active session")

        sid = self._next_id
        self._next_id += 1
        self.sessions[sid] = AttendanceSession(
            session_id=sid,
            entry_id=entry_id,
            opener_id=opener_id,
            opener_role=opener_role,
            session_date=session_date,
            start_time=start_time,
            verification_type=verification_type,
            status=SessionStatus.ACTIVE,
            auto_close=settings.auto_close,
            duration=settings.duration,
            allow_late=settings.allow_late,
            late_threshold=settings.late_threshold,
            notes=settings.notes,
            qr_token=qr_token,
        )
        return sid

    def finish(self, *, session_id, status, end_time=None):
        s = self.sessions.get(session_id)
        if s is None or s.status != SessionStatus.ACTIVE:
            return False
        self.sessions[session_id] = replace(s, status=status, end_time=end_time)
        return True

    def list_active_for(self, *, opener_id=None, entry_ids=None):
        ids = set(entry_ids or [])
        return [
            s
            for s in self.sessions.values()
            if s.status == SessionStatus.ACTIVE and (s.opener_id == opener_id or s.entry_id in ids)
        ]

    def list_in_range(self, *, start, end, opener_id=None, entry_ids=None):
        ids = set(entry_ids or [])
        return [
            s
            for s in self.sessions.values()
            if start <= s.session_date <= end and (s.opener_id == opener_id or s.entry_id in ids)
        ]

    def count_for_entry(self, entry_id):
        return sum(1 for s in self.sessions.values() if s.entry_id == entry_id)


class InMemoryRecords:
    def __init__(self, sessions: InMemorySessions):
        self._sessions = sessions
        self._next_id = 1
        self.records: dict[tuple[int, int], StudentAttendanceRecord] = {}
        self.fail_for: set[int] = set()

    def insert_absent_many(self, *, session_id, student_ids):
        inserted = 0
        for student_id in student_ids:
            if student_id in self.fail_for or (session_id, student_id) in self.records:
                continue
            self.records[(session_id, student_id)] = StudentAttendanceRecord(
                record_id=self._next_id,
                session_id=session_id,
                student_id=student_id,
                status=StudentAttendanceStatus.ABSENT,
            )
            self._next_id += 1
            inserted += 1
        return inserted

    def upsert(
        self,
        *,
        session_id,
        student_id,
        status,
        check_in_time=None,
        verification_method=None,
        verified_by=None,
        notes="",
    ):
        existing = self.records.get((session_id, student_id))
        record_id = existing.record_id if existing else self._next_id
        if existing is None:
            self._next_id += 1
        record = StudentAttendanceRecord(
            record_id=record_id,
            session_id=session_id,
            student_id=student_id,
            status=status,
            check_in_time=check_in_time,
            verification_method=verification_method,
            verified_by=verified_by,
            notes=notes,
        )
        self.records[(session_id, student_id)] = record
        return record

    def get(self, *, session_id, student_id):
        return self.records.get((session_id, student_id))

    def list_for_session(self, session_id):
        return sorted((r for r in self.records.values() if r.session_id == session_id), key=lambda r: r.student_id)

    def history_for_student(self, *, student_id, limit):
        rows = []
        for r in self.records.values():
            if r.student_id != student_id:
                continue
            s = self._sessions.get(r.session_id)
            rows.append(
                AttendanceHistoryRow(record=r, entry_id=s.entry_id, session_date=s.session_date, session_status=s.status)
            )
        rows.sort(key=lambda row: row.session_date, reverse=True)
        return rows[:limit]

    def count_by_status(self, *, session_id=None, entry_id=None):
        counts: dict[StudentAttendanceStatus, int] = {}
        for r in self.records.values():
            if session_id is not None and r.session_id != session_id:
                continue
            if entry_id is not None and self._sessions.get(r.session_id).entry_id != entry_id:
                continue
            counts[r.status] = counts.get(r.status, 0) + 1
        return counts


@dataclass
class World:
    catalog: InMemoryCatalog
    cohorts: InMemoryCohorts
    lecturers: InMemoryStaffDirectory
    employees: InMemoryStaffDirectory
    assignments: InMemoryAssignments
    timetable: InMemoryTimetable
    sessions: InMemorySessions
    records: InMemoryRecords
    entry: TimetableEntry
    container: Container


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 3, 8, 0, 0)


@pytest.fixture
def world() -> World:
    """One course offering taught by 5106 with two assistants and a ten-student cohort."""

    catalog = InMemoryCatalog(
        courses={COURSE, 11},
        rooms={ROOM_R1: 40, ROOM_R2: 30},
        cohorts={COHORT, OTHER_COHORT},
        periods={PERIOD},
    )
    cohorts = InMemoryCohorts(members={COHORT: list(STUDENTS), OTHER_COHORT: [2001, 2002]})
    lecturers = InMemoryStaffDirectory(
        members=[
            StaffMember(record_id=51, user_id=INSTRUCTOR, full_name="Dosen A"),
            StaffMember(record_id=52, user_id=0, full_name="Dosen Unlinked"),
            StaffMember(record_id=53, user_id=5200, full_name="Dosen B"),
        ]
    )
    employees = InMemoryStaffDirectory(
        members=[
            StaffMember(record_id=81, user_id=ASSISTANT_A, full_name="Asisten A"),
            StaffMember(record_id=82, user_id=ASSISTANT_B, full_name="Asisten B"),
            StaffMember(record_id=83, user_id=6003, full_name="Asisten C"),
        ]
    )

    assignments = InMemoryAssignments()
    assignments.create_instructor(user_id=INSTRUCTOR, course_id=COURSE, period_id=PERIOD)
    assignments.create_assistant(user_id=ASSISTANT_A, course_id=COURSE, period_id=PERIOD, assigned_by=1)
    assignments.create_assistant(user_id=ASSISTANT_B, course_id=COURSE, period_id=PERIOD, assigned_by=1)

    timetable = InMemoryTimetable()
    entry = timetable.add(
        course_id=COURSE,
        room_id=ROOM_R1,
        cohort_id=COHORT,
        instructor_id=INSTRUCTOR,
        period_id=PERIOD,
        day=DayOfWeek.MONDAY,
        start_time=time(8, 0),
        end_time=time(9, 40),
        capacity=40,
        enrolled=len(STUDENTS),
    )

    sessions = InMemorySessions()
    records = InMemoryRecords(sessions)

    container = wire_container(
        catalog_repo=catalog,
        cohorts=cohorts,
        assignments_repo=assignments,
        lecturers=lecturers,
        employees=employees,
        timetable_repo=timetable,
        sessions_repo=sessions,
        records_repo=records,
        qr_namespace="classattend",
    )

    return World(
        catalog=catalog,
        cohorts=cohorts,
        lecturers=lecturers,
        employees=employees,
        assignments=assignments,
        timetable=timetable,
        sessions=sessions,
        records=records,
        entry=entry,
        container=container,
    )
