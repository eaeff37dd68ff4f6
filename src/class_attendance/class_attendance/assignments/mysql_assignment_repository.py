from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AssistantAssignment, InstructorAssignment, StaffMember
from .repository import AssignmentRepository, StaffDirectory


def _instructor_from_row(r: dict) -> InstructorAssignment:
    return InstructorAssignment(
        assignment_id=int(r["assignment_id"]),
        user_id=int(r["user_id"]),
        course_id=int(r["course_id"]),
        period_id=int(r["period_id"]),
    )


def _assistant_from_row(r: dict) -> AssistantAssignment:
    return AssistantAssignment(
        assignment_id=int(r["assignment_id"]),
        user_id=int(r["user_id"]),
        course_id=int(r["course_id"]),
        period_id=int(r["period_id"]),
        assigned_by=int(r["assigned_by"]) if r.get("assigned_by") is not None else None,
    )


def _filters(course_id: Optional[int], period_id: Optional[int]) -> tuple[str, tuple]:
    clauses = ["1=1"]
    params: list[object] = []
    if course_id is not None:
        clauses.append("course_id=%s")
        params.append(int(course_id))
    if period_id is not None:
        clauses.append("period_id=%s")
        params.append(int(period_id))
    return " AND ".join(clauses), tuple(params)


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_instructor_for(self, *, course_id: int, period_id: int) -> Optional[InstructorAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, user_id, course_id, period_id
                FROM instructor_assignments
                WHERE course_id=%s AND period_id=%s
                """,
                (int(course_id), int(period_id)),
            )
            r = fetchone(cur)
            return _instructor_from_row(r) if r else None

    def find_instructor_pair(self, *, user_id: int, course_id: int) -> Optional[InstructorAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, user_id, course_id, period_id
                FROM instructor_assignments
                WHERE user_id=%s AND course_id=%s
                LIMIT 1
                """,
                (int(user_id), int(course_id)),
            )
            r = fetchone(cur)
            return _instructor_from_row(r) if r else None

    def create_instructor(self, *, user_id: int, course_id: int, period_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO instructor_assignments(user_id, course_id, period_id) VALUES(%s,%s,%s)",
                (int(user_id), int(course_id), int(period_id)),
            )
            return int(cur.lastrowid)

    def delete_instructor(self, *, assignment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM instructor_assignments WHERE assignment_id=%s", (int(assignment_id),))
            return cur.rowcount > 0

    def list_instructors(
        self, *, course_id: Optional[int] = None, period_id: Optional[int] = None
    ) -> Sequence[InstructorAssignment]:
        where, params = _filters(course_id, period_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT assignment_id, user_id, course_id, period_id
                FROM instructor_assignments
                WHERE {where}
                ORDER BY course_id ASC, period_id ASC
                """,
                params,
            )
            return [_instructor_from_row(r) for r in fetchall(cur)]

    def list_assistants(
        self, *, course_id: Optional[int] = None, period_id: Optional[int] = None
    ) -> Sequence[AssistantAssignment]:
        where, params = _filters(course_id, period_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT assignment_id, user_id, course_id, period_id, assigned_by
                FROM assistant_assignments
                WHERE {where}
                ORDER BY course_id ASC, user_id ASC
                """,
                params,
            )
            return [_assistant_from_row(r) for r in fetchall(cur)]

    def list_assistant_assignments_for_user(self, *, user_id: int) -> Sequence[AssistantAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, user_id, course_id, period_id, assigned_by
                FROM assistant_assignments
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            return [_assistant_from_row(r) for r in fetchall(cur)]

    def find_assistant_pair(self, *, user_id: int, course_id: int) -> Optional[AssistantAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, user_id, course_id, period_id, assigned_by
                FROM assistant_assignments
                WHERE user_id=%s AND course_id=%s
                LIMIT 1
                """,
                (int(user_id), int(course_id)),
            )
            r = fetchone(cur)
            return _assistant_from_row(r) if r else None

    def create_assistant(
        self, *, user_id: int, course_id: int, period_id: int, assigned_by: Optional[int] = None
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO assistant_assignments(user_id, course_id, period_id, assigned_by)
                VALUES(%s,%s,%s,%s)
                """,
                (int(user_id), int(course_id), int(period_id), assigned_by),
            )
            return int(cur.lastrowid)

    def delete_assistant(self, *, assignment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM assistant_assignments WHERE assignment_id=%s", (int(assignment_id),))
            return cur.rowcount > 0


class MySQLStaffDirectory(StaffDirectory):
    """Reads `lecturers` or `employees`; both share the (id, user_id, full_name) shape."""

    _TABLES = ("lecturers", "employees")

    def __init__(self, conn_factory: DatabaseConnection, *, table: str):
        if table not in self._TABLES:
            raise ValueError(f"Unsupported staff table: {table}")
        self._conn_factory = conn_factory
        self._table = table

    def _get(self, column: str, value: int) -> Optional[StaffMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT id, user_id, full_name FROM {self._table} WHERE {column}=%s AND deleted_at IS NULL LIMIT 1",
                (int(value),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return StaffMember(
                record_id=int(r["id"]),
                user_id=int(r["user_id"] or 0),
                full_name=r.get("full_name"),
            )

    def get_by_user_id(self, user_id: int) -> Optional[StaffMember]:
        return self._get("user_id", user_id)

    def get_by_record_id(self, record_id: int) -> Optional[StaffMember]:
        return self._get("id", record_id)
