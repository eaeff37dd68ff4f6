from __future__ import annotations

from dataclasses import dataclass

from .assignments.mysql_assignment_repository import MySQLAssignmentRepository, MySQLStaffDirectory
from .assignments.repository import AssignmentRepository, StaffDirectory
from .assignments.resolver import AssignmentResolver
from .assignments.service import AssignmentService
from .attendance.factory import CheckInStatusFactory
from .attendance.mysql_record_repository import MySQLAttendanceRecordRepository
from .attendance.mysql_session_repository import MySQLSessionRepository
from .attendance.recorder import StudentAttendanceRecorder
from .attendance.repository import AttendanceRecordRepository, SessionRepository
from .attendance.session_manager import AttendanceSessionManager
from .attendance.verifier import AttendanceVerifier
from .catalog.mysql_catalog_repository import MySQLCatalogRepository
from .catalog.repository import CatalogRepository
from .cohorts.mysql_cohort_repository import MySQLCohortMembership
from .cohorts.repository import CohortMembership
from .core.constants import DEFAULT_QR_NAMESPACE
from .database.connection import DBConfig, DatabaseConnection
from .schedules.conflicts import ResourceConflictChecker
from .schedules.mysql_timetable_repository import MySQLTimetableRepository
from .schedules.repository import TimetableRepository
from .schedules.service import TimetableService


@dataclass(frozen=True)
class Container:
    catalog_repo: CatalogRepository
    cohorts: CohortMembership
    assignments_repo: AssignmentRepository
    lecturers: StaffDirectory
    employees: StaffDirectory
    timetable_repo: TimetableRepository
    sessions_repo: SessionRepository
    records_repo: AttendanceRecordRepository

    resolver: AssignmentResolver
    conflict_checker: ResourceConflictChecker
    assignment_service: AssignmentService
    timetable_service: TimetableService
    recorder: StudentAttendanceRecorder
    session_manager: AttendanceSessionManager
    verifier: AttendanceVerifier


def wire_container(
    *,
    catalog_repo: CatalogRepository,
    cohorts: CohortMembership,
    assignments_repo: AssignmentRepository,
    lecturers: StaffDirectory,
    employees: StaffDirectory,
    timetable_repo: TimetableRepository,
    sessions_repo: SessionRepository,
    records_repo: AttendanceRecordRepository,
    qr_namespace: str = DEFAULT_QR_NAMESPACE,
) -> Container:
    """Assemble services on top of any repository implementations (MySQL or in-memory)."""

    resolver = AssignmentResolver(assignments_repo, lecturers)
    conflict_checker = ResourceConflictChecker(timetable_repo)
    assignment_service = AssignmentService(assignments_repo, resolver, lecturers, employees, catalog_repo)
    timetable_service = TimetableService(timetable_repo, catalog_repo, cohorts, resolver, conflict_checker)
    recorder = StudentAttendanceRecorder(records_repo, sessions_repo, timetable_repo, cohorts)
    session_manager = AttendanceSessionManager(
        sessions_repo,
        timetable_repo,
        assignments_repo,
        resolver,
        cohorts,
        recorder,
        qr_namespace=qr_namespace,
    )
    verifier = AttendanceVerifier(
        session_manager,
        timetable_repo,
        cohorts,
        recorder,
        status_factory=CheckInStatusFactory(),
        qr_namespace=qr_namespace,
    )

    return Container(
        catalog_repo=catalog_repo,
        cohorts=cohorts,
        assignments_repo=assignments_repo,
        lecturers=lecturers,
        employees=employees,
        timetable_repo=timetable_repo,
        sessions_repo=sessions_repo,
        records_repo=records_repo,
        resolver=resolver,
        conflict_checker=conflict_checker,
        assignment_service=assignment_service,
        timetable_service=timetable_service,
        recorder=recorder,
        session_manager=session_manager,
        verifier=verifier,
    )


def build_container(*, db_config: dict, qr_namespace: str = DEFAULT_QR_NAMESPACE) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))

    return wire_container(
        catalog_repo=MySQLCatalogRepository(conn),
        cohorts=MySQLCohortMembership(conn),
        assignments_repo=MySQLAssignmentRepository(conn),
        lecturers=MySQLStaffDirectory(conn, table="lecturers"),
        employees=MySQLStaffDirectory(conn, table="employees"),
        timetable_repo=MySQLTimetableRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        records_repo=MySQLAttendanceRecordRepository(conn),
        qr_namespace=qr_namespace,
    )
