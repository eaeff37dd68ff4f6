from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import SessionStatus, StudentAttendanceStatus, VerificationMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceHistoryRow, StudentAttendanceRecord
from .repository import AttendanceRecordRepository

logger = logging.getLogger(__name__)

_COLUMNS = "record_id, session_id, student_id, status, check_in_time, verification_method, verified_by, notes"


def _record_from_row(r: dict) -> StudentAttendanceRecord:
    method = r.get("verification_method")
    return StudentAttendanceRecord(
        record_id=int(r["record_id"]),
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        status=StudentAttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        verification_method=VerificationMethod(method) if method else None,
        verified_by=int(r["verified_by"]) if r.get("verified_by") is not None else None,
        notes=r.get("notes") or "",
    )


class MySQLAttendanceRecordRepository(AttendanceRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_absent_many(self, *, session_id: int, student_ids: Sequence[int]) -> int:
        inserted = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for student_id in student_ids:
                try:
                    cur.execute(
                        """
                        INSERT INTO student_attendances(session_id, student_id, status)
                        VALUES(%s,%s,'ABSENT')
                        """,
                        (int(session_id), int(student_id)),
                    )
                    inserted += 1
                except mysql.connector.Error as exc:
                    logger.warning(
                        "Could not initialize attendance for student %s in session %s: %s",
                        student_id,
                        session_id,
                        exc,
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO student_attendances(
                    session_id, student_id, status, check_in_time, verification_method, verified_by, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    check_in_time=VALUES(check_in_time),
                    verification_method=VALUES(verification_method),
                    verified_by=VALUES(verified_by),
                    notes=VALUES(notes)
                """,
                (
                    int(session_id),
                    int(student_id),
                    status.value,
                    check_in_time,
                    verification_method.value if verification_method else None,
                    verified_by,
                    notes,
                ),
            )
            cur.execute(
                f"SELECT {_COLUMNS} FROM student_attendances WHERE session_id=%s AND student_id=%s",
                (int(session_id), int(student_id)),
            )
            return _record_from_row(fetchone(cur))

    def get(self, *, session_id: int, student_id: int) -> Optional[StudentAttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM student_attendances WHERE session_id=%s AND student_id=%s",
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            return _record_from_row(r) if r else None

    def list_for_session(self, session_id: int) -> Sequence[StudentAttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM student_attendances WHERE session_id=%s ORDER BY student_id ASC",
                (int(session_id),),
            )
            return [_record_from_row(r) for r in fetchall(cur)]

    def history_for_student(self, *, student_id: int, limit: int) -> Sequence[AttendanceHistoryRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    sa.record_id, sa.session_id, sa.student_id, sa.status, sa.check_in_time,
                    sa.verification_method, sa.verified_by, sa.notes,
                    s.entry_id, s.session_date, s.status AS session_status
                FROM student_attendances sa
                JOIN attendance_sessions s ON s.session_id = sa.session_id
                WHERE sa.student_id=%s
                ORDER BY s.session_date DESC, s.start_time DESC
                LIMIT %s
                """,
                (int(student_id), int(limit)),
            )
            return [
                AttendanceHistoryRow(
                    record=_record_from_row(r),
                    entry_id=int(r["entry_id"]),
                    session_date=r["session_date"],
                    session_status=SessionStatus(r["session_status"]),
                )
                for r in fetchall(cur)
            ]

    def count_by_status(
        self, *, session_id: Optional[int] = None, entry_id: Optional[int] = None
    ) -> Mapping[StudentAttendanceStatus, int]:
        if session_id is not None:
            sql = "SELECT status, COUNT(*) AS total FROM student_attendances WHERE session_id=%s GROUP BY status"
            params: tuple = (int(session_id),)
        elif entry_id is not None:
            sql = """
                SELECT sa.status, COUNT(*) AS total
                FROM student_attendances sa
                JOIN attendance_sessions s ON s.session_id = sa.session_id
                WHERE s.entry_id=%s
                GROUP BY sa.status
            """
            params = (int(entry_id),)
        else:
            raise ValueError("session_id or entry_id is required")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return {StudentAttendanceStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}
