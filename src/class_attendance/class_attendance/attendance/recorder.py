from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..cohorts.repository import CohortMembership
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import StudentAttendanceStatus, VerificationMethod
from ..core.exceptions import NotFoundError
from ..schedules.model import TimetableEntry
from ..schedules.repository import TimetableRepository
from .model import AttendanceHistoryRow, AttendanceStatistics, StatusCounts, StudentAttendanceRecord
from .repository import AttendanceRecordRepository, SessionRepository

logger = logging.getLogger(__name__)


def average_attendance(*, present: int, late: int, sessions: int, students: int) -> int:
    """Whole-number percentage of attended seats; late counts as attended."""

    if sessions <= 0 or students <= 0:
        return 0
    return (present + late) * 100 // (sessions * students)


class StudentAttendanceRecorder:
    """Owns per-student rows: default-absent seeding, upserts and aggregates."""

    def __init__(
        self,
        records: AttendanceRecordRepository,
        sessions: SessionRepository,
        timetable: TimetableRepository,
        cohorts: CohortMembership,
    ):
        self._records = records
        self._sessions = sessions
        self._timetable = timetable
        self._cohorts = cohorts

    def initialize_absent(self, session_id: int, student_ids: Sequence[int]) -> int:
        if not student_ids:
            return 0
        inserted = self._records.insert_absent_many(session_id=session_id, student_ids=list(student_ids))
        if inserted < len(student_ids):
            logger.warning(
                "Session %s: initialized %d of %d students as absent", session_id, inserted, len(student_ids)
            )
        return inserted

    def upsert(
        self,
        *,
        session_id: int,
        student_id: int,
        status: StudentAttendanceStatus,
        check_in_time: Optional[datetime] = None,
        verification_method: Optional[VerificationMethod] = None,
        verified_by: Optional[int] = None,
        notes: str = "",
    ) -> StudentAttendanceRecord:
        return self._records.upsert(
            session_id=session_id,
            student_id=student_id,
            status=status,
            check_in_time=check_in_time,
            verification_method=verification_method,
            verified_by=verified_by,
            notes=notes,
        )

    def get(self, *, session_id: int, student_id: int) -> Optional[StudentAttendanceRecord]:
        return self._records.get(session_id=session_id, student_id=student_id)

    def list_for_session(self, session_id: int) -> Sequence[StudentAttendanceRecord]:
        return self._records.list_for_session(session_id)

    def history_for_student(
        self, student_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> Sequence[AttendanceHistoryRow]:
        return self._records.history_for_student(student_id=student_id, limit=limit)

    def counts_for_session(self, session_id: int) -> StatusCounts:
        return StatusCounts.from_mapping(self._records.count_by_status(session_id=session_id))

    def enrolled_for(self, entry: TimetableEntry) -> int:
        """Stored enrolment, or the cohort's current size when it was never filled in."""

        if entry.enrolled > 0:
            return entry.enrolled
        return self._cohorts.count(entry.cohort_id)

    def statistics(self, entry_id: int) -> AttendanceStatistics:
        entry = self._timetable.get(entry_id)
        if entry is None:
            raise NotFoundError("schedule not found")

        total_sessions = self._sessions.count_for_entry(entry_id)
        students = self.enrolled_for(entry)
        counts = StatusCounts.from_mapping(self._records.count_by_status(entry_id=entry_id))

        return AttendanceStatistics(
            total_sessions=total_sessions,
            total_students=students,
            total_present=counts.present,
            total_late=counts.late,
            total_absent=counts.absent,
            total_excused=counts.excused,
            average_attendance=average_attendance(
                present=counts.present, late=counts.late, sessions=total_sessions, students=students
            ),
        )
