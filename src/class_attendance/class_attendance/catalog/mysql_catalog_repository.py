from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import CatalogRepository


class MySQLCatalogRepository(CatalogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _exists(self, table: str, id_col: str, value: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT 1 AS found FROM {table} WHERE {id_col}=%s AND deleted_at IS NULL", (int(value),))
            return fetchone(cur) is not None

    def course_exists(self, course_id: int) -> bool:
        return self._exists("courses", "course_id", course_id)

    def room_capacity(self, room_id: int) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT capacity FROM rooms WHERE room_id=%s AND deleted_at IS NULL",
                (int(room_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return int(r["capacity"] or 0)

    def cohort_exists(self, cohort_id: int) -> bool:
        return self._exists("cohorts", "cohort_id", cohort_id)

    def period_exists(self, period_id: int) -> bool:
        return self._exists("academic_periods", "period_id", period_id)
