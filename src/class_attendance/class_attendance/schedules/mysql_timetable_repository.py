from __future__ import annotations

from datetime import datetime, time
from typing import Iterable, Optional, Sequence

from ..core.enums import DayOfWeek
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import TimetableDraft, TimetableEntry
from .repository import TimetableRepository

_COLUMNS = """
    entry_id, course_id, room_id, cohort_id, instructor_id, period_id,
    day, start_time, end_time, capacity, enrolled, deleted_at
"""

_DAY_ORDER = ", ".join(f"'{d.value}'" for d in DayOfWeek)


def _entry_from_row(r: dict) -> TimetableEntry:
    return TimetableEntry(
        entry_id=int(r["entry_id"]),
        course_id=int(r["course_id"]),
        room_id=int(r["room_id"]),
        cohort_id=int(r["cohort_id"]),
        instructor_id=int(r["instructor_id"]),
        period_id=int(r["period_id"]),
        day=DayOfWeek(r["day"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        capacity=int(r["capacity"] or 0),
        enrolled=int(r["enrolled"] or 0),
        deleted_at=r.get("deleted_at"),
    )


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, entry_id: int) -> Optional[TimetableEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM timetable_entries WHERE entry_id=%s AND deleted_at IS NULL",
                (int(entry_id),),
            )
            r = fetchone(cur)
            return _entry_from_row(r) if r else None

    def create(self, *, draft: TimetableDraft, instructor_id: int, capacity: int, enrolled: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timetable_entries(
                    course_id, room_id, cohort_id, instructor_id, period_id,
                    day, start_time, end_time, capacity, enrolled
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    draft.course_id,
                    draft.room_id,
                    draft.cohort_id,
                    int(instructor_id),
                    draft.period_id,
                    draft.day.value,
                    draft.start_time,
                    draft.end_time,
                    int(capacity),
                    int(enrolled),
                ),
            )
            return int(cur.lastrowid)

    def update(
        self, *, entry_id: int, draft: TimetableDraft, instructor_id: int, capacity: int, enrolled: int
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timetable_entries
                SET course_id=%s, room_id=%s, cohort_id=%s, instructor_id=%s, period_id=%s,
                    day=%s, start_time=%s, end_time=%s, capacity=%s, enrolled=%s
                WHERE entry_id=%s AND deleted_at IS NULL
                """,
                (
                    draft.course_id,
                    draft.room_id,
                    draft.cohort_id,
                    int(instructor_id),
                    draft.period_id,
                    draft.day.value,
                    draft.start_time,
                    draft.end_time,
                    int(capacity),
                    int(enrolled),
                    int(entry_id),
                ),
            )
            return cur.rowcount > 0

    def soft_delete(self, *, entry_id: int, deleted_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE timetable_entries SET deleted_at=%s WHERE entry_id=%s AND deleted_at IS NULL",
                (deleted_at, int(entry_id)),
            )
            return cur.rowcount > 0

    def list_entries(
        self,
        *,
        course_id: Optional[int] = None,
        cohort_id: Optional[int] = None,
        room_id: Optional[int] = None,
        instructor_id: Optional[int] = None,
        period_id: Optional[int] = None,
        day: Optional[DayOfWeek] = None,
        cohort_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[TimetableEntry]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        for column, value in (
            ("course_id", course_id),
            ("cohort_id", cohort_id),
            ("room_id", room_id),
            ("instructor_id", instructor_id),
            ("period_id", period_id),
        ):
            if value is not None:
                clauses.append(f"{column}=%s")
                params.append(int(value))
        if day is not None:
            clauses.append("day=%s")
            params.append(day.value)
        if cohort_ids is not None:
            ids = [int(c) for c in cohort_ids]
            if not ids:
                return []
            clauses.append(f"cohort_id IN ({', '.join(['%s'] * len(ids))})")
            params.extend(ids)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM timetable_entries
                WHERE {where}
                ORDER BY FIELD(day, {_DAY_ORDER}) ASC, start_time ASC, entry_id ASC
                """,
                tuple(params),
            )
            return [_entry_from_row(r) for r in fetchall(cur)]

    def find_duplicate(
        self,
        *,
        course_id: int,
        day: DayOfWeek,
        start_time: time,
        end_time: time,
        period_id: int,
        exclude_entry_id: Optional[int] = None,
    ) -> Optional[TimetableEntry]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM timetable_entries
            WHERE course_id=%s AND day=%s AND start_time=%s AND end_time=%s
              AND period_id=%s AND deleted_at IS NULL
        """
        params: list[object] = [int(course_id), day.value, start_time, end_time, int(period_id)]
        if exclude_entry_id is not None:
            sql += " AND entry_id<>%s"
            params.append(int(exclude_entry_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            r = fetchone(cur)
            return _entry_from_row(r) if r else None
