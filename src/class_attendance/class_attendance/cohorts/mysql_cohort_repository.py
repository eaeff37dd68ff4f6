from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .repository import CohortMembership


class MySQLCohortMembership(CohortMembership):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_students(self, cohort_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT student_id FROM cohort_members WHERE cohort_id=%s ORDER BY student_id ASC",
                (int(cohort_id),),
            )
            return [int(r["student_id"]) for r in fetchall(cur)]

    def is_member(self, cohort_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM cohort_members WHERE cohort_id=%s AND student_id=%s",
                (int(cohort_id), int(student_id)),
            )
            return fetchone(cur) is not None

    def count(self, cohort_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM cohort_members WHERE cohort_id=%s", (int(cohort_id),))
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def list_cohorts_for_student(self, student_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT cohort_id FROM cohort_members WHERE student_id=%s ORDER BY cohort_id ASC",
                (int(student_id),),
            )
            return [int(r["cohort_id"]) for r in fetchall(cur)]
