from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import (
    OpenerRole,
    SessionStatus,
    StudentAttendanceStatus,
    VerificationMethod,
    VerificationType,
)
from .model import AttendanceHistoryRow, AttendanceSession, SessionSettings, StudentAttendanceRecord


class SessionRepository(Protocol):
    def get(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_active(self, *, entry_id: int, session_date: date) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def create(
        self,
        *,
        entry_id: int,
        opener_id: int,
        opener_role: OpenerRole,
        session_date: date,
        start_time: datetime,
        verification_type: VerificationType,
        settings: SessionSettings,
        qr_token: Optional[str] = None,
    ) -> int:
        """Insert an ACTIVE session.

        Raises DuplicateActiveSessionError when storage already holds an ACTIVE
        session for the same (entry, date, opener role).
        """

        raise NotImplementedError

    def finish(self, *, session_id: int, status: SessionStatus, end_time: Optional[datetime] = None) -> bool:
        """Move an ACTIVE session to a terminal status. False if it was not ACTIVE."""

        raise NotImplementedError

    def list_active_for(
        self, *, opener_id: Optional[int] = None, entry_ids: Optional[Iterable[int]] = None
    ) -> Sequence[AttendanceSession]:
        """ACTIVE sessions opened by `opener_id` OR belonging to one of `entry_ids`."""

        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        opener_id: Optional[int] = None,
        entry_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def count_for_entry(self, entry_id: int) -> int:
        raise NotImplementedError


class AttendanceRecordRepository(Protocol):
    def insert_absent_many(self, *, session_id: int, student_ids: Sequence[int]) -> int:
        """Insert ABSENT rows in one transaction; rows that fail are skipped.

        Returns the number of rows inserted.
        """

        raise NotImplementedError

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
        raise NotImplementedError

    def get(self, *, session_id: int, student_id: int) -> Optional[StudentAttendanceRecord]:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[StudentAttendanceRecord]:
        raise NotImplementedError

    def history_for_student(self, *, student_id: int, limit: int) -> Sequence[AttendanceHistoryRow]:
        raise NotImplementedError

    def count_by_status(
        self, *, session_id: Optional[int] = None, entry_id: Optional[int] = None
    ) -> Mapping[StudentAttendanceStatus, int]:
        """Per-status totals for one session, or across every session of an entry."""

        raise NotImplementedError
