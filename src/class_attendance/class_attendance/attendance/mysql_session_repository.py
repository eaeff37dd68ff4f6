from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import OpenerRole, SessionStatus, VerificationType
from ..core.exceptions import DuplicateActiveSessionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceSession, SessionSettings
from .repository import SessionRepository

_COLUMNS = """
    session_id, entry_id, opener_id, opener_role, session_date, start_time, end_time,
    verification_type, status, auto_close, duration, allow_late, late_threshold, notes, qr_token
"""


def _session_from_row(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        entry_id=int(r["entry_id"]),
        opener_id=int(r["opener_id"]),
        opener_role=OpenerRole(r["opener_role"]),
        session_date=r["session_date"],
        start_time=r["start_time"],
        end_time=r.get("end_time"),
        verification_type=VerificationType(r["verification_type"]),
        status=SessionStatus(r["status"]),
        auto_close=bool(r["auto_close"]),
        duration=int(r["duration"]),
        allow_late=bool(r["allow_late"]),
        late_threshold=int(r["late_threshold"]),
        notes=r.get("notes") or "",
        qr_token=r.get("qr_token"),
    )


def _scope(opener_id: Optional[int], entry_ids: Optional[Iterable[int]]) -> tuple[str, list[object]]:
    """OR-combine the opener and entry filters; empty scope matches nothing."""

    parts: list[str] = []
    params: list[object] = []
    if opener_id is not None:
        parts.append("opener_id=%s")
        params.append(int(opener_id))
    ids = [int(e) for e in entry_ids] if entry_ids is not None else []
    if ids:
        parts.append(f"entry_id IN ({', '.join(['%s'] * len(ids))})")
        params.extend(ids)
    if not parts:
        return "1=0", []
    return "(" + " OR ".join(parts) + ")", params


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _session_from_row(r) if r else None

    def list_active(self, *, entry_id: int, session_date: date) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE entry_id=%s AND session_date=%s AND status='ACTIVE'
                ORDER BY start_time ASC
                """,
                (int(entry_id), session_date),
            )
            return [_session_from_row(r) for r in fetchall(cur)]

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        entry_id, opener_id, opener_role, session_date, start_time,
                        verification_type, status, auto_close, duration, allow_late,
                        late_threshold, notes, qr_token
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,'ACTIVE',%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(entry_id),
                        int(opener_id),
                        opener_role.value,
                        session_date,
                        start_time,
                        verification_type.value,
                        int(settings.auto_close),
                        int(settings.duration),
                        int(settings.allow_late),
                        int(settings.late_threshold),
                        settings.notes,
                        qr_token,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicateActiveSessionError(
                    f"An active {opener_role.value} session already exists for this class today"
                ) from exc
            raise

    def finish(self, *, session_id: int, status: SessionStatus, end_time: Optional[datetime] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET status=%s, end_time=%s
                WHERE session_id=%s AND status='ACTIVE'
                """,
                (status.value, end_time, int(session_id)),
            )
            return cur.rowcount > 0

    def list_active_for(
        self, *, opener_id: Optional[int] = None, entry_ids: Optional[Iterable[int]] = None
    ) -> Sequence[AttendanceSession]:
        scope, params = _scope(opener_id, entry_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE status='ACTIVE' AND {scope}
                ORDER BY start_time DESC
                """,
                tuple(params),
            )
            return [_session_from_row(r) for r in fetchall(cur)]

    def list_in_range(
        self,
        *,
        start: date,
        end: date,
        opener_id: Optional[int] = None,
        entry_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[AttendanceSession]:
        scope, params = _scope(opener_id, entry_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE session_date BETWEEN %s AND %s AND {scope}
                ORDER BY session_date DESC, start_time DESC
                """,
                tuple([start, end] + params),
            )
            return [_session_from_row(r) for r in fetchall(cur)]

    def count_for_entry(self, entry_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM attendance_sessions WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return int(r["total"]) if r else 0
