from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Sequence, Union

from ..assignments.repository import AssignmentRepository
from ..assignments.resolver import AssignmentResolver
from ..cohorts.repository import CohortMembership
from ..common.datetime_utils import parse_iso_date
from ..common.validators import parse_identity
from ..core.constants import DEFAULT_QR_NAMESPACE, DEFAULT_SESSION_RANGE_DAYS
from ..core.enums import OpenerRole, SessionStatus, VerificationType
from ..core.exceptions import (
    AuthorizationError,
    DuplicateActiveSessionError,
    InstructorSessionExistsError,
    NotFoundError,
    SessionNotActiveError,
    ValidationError,
)
from ..schedules.model import TimetableEntry
from ..schedules.repository import TimetableRepository
from . import qr
from .model import (
    AttendanceSession,
    AttendanceStatistics,
    SessionDetails,
    SessionSettings,
    StudentAttendanceRecord,
)
from .recorder import StudentAttendanceRecorder
from .repository import SessionRepository

logger = logging.getLogger(__name__)


def parse_verification_type(value: Any) -> VerificationType:
    if isinstance(value, VerificationType):
        return value
    try:
        return VerificationType(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("Invalid verification type")


def _as_date(value: Union[date, str, None], default: date) -> date:
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


class AttendanceSessionManager:
    """Opens, closes and cancels attendance sessions for timetable entries.

    An entry may carry at most one ACTIVE session per opener role on a given
    date. An instructor may still open while an assistant's session is active;
    the reverse is refused.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        timetable: TimetableRepository,
        assignments: AssignmentRepository,
        resolver: AssignmentResolver,
        cohorts: CohortMembership,
        recorder: StudentAttendanceRecorder,
        *,
        qr_namespace: str = DEFAULT_QR_NAMESPACE,
    ):
        self._sessions = sessions
        self._timetable = timetable
        self._assignments = assignments
        self._resolver = resolver
        self._cohorts = cohorts
        self._recorder = recorder
        self._qr_namespace = qr_namespace

    def _get_entry(self, entry_id: int) -> TimetableEntry:
        entry = self._timetable.get(entry_id)
        if entry is None:
            raise NotFoundError("schedule not found")
        return entry

    def get_session(self, session_id: Any) -> AttendanceSession:
        session = self._sessions.get(parse_identity(session_id, "session_id"))
        if session is None:
            raise NotFoundError("attendance session not found")
        return session

    def can_manage(self, actor_id: int, session: AttendanceSession) -> bool:
        """The opener, or anyone who could open a session for the same entry."""

        if actor_id == session.opener_id:
            return True
        entry = self._timetable.get(session.entry_id)
        return entry is not None and self._resolver.role_for(actor_id, entry) is not None

    def _require_manager(self, actor_id: int, session: AttendanceSession) -> None:
        if not self.can_manage(actor_id, session):
            raise AuthorizationError("You are not authorized to manage this attendance session")

    def _arbitrate(self, *, entry_id: int, session_date: date, opener_id: int, role: OpenerRole) -> None:
        for existing in self._sessions.list_active(entry_id=entry_id, session_date=session_date):
            if existing.opener_id == opener_id:
                raise DuplicateActiveSessionError("You already have an active session for this class today")
            if existing.opener_role == OpenerRole.ASSISTANT and role == OpenerRole.INSTRUCTOR:
                continue
            if existing.opener_role == OpenerRole.INSTRUCTOR and role == OpenerRole.ASSISTANT:
                raise InstructorSessionExistsError(
                    "The instructor already has an active session for this class today"
                )
            raise DuplicateActiveSessionError(
                f"Another {existing.opener_role.value.lower()} already has an active session for this class today"
            )

    def _staff_entry_ids(self, user_id: int) -> list[int]:
        ids = {e.entry_id for e in self._timetable.list_entries(instructor_id=user_id)}
        for assignment in self._assignments.list_assistant_assignments_for_user(user_id=user_id):
            for entry in self._timetable.list_entries(
                course_id=assignment.course_id, period_id=assignment.period_id
            ):
                ids.add(entry.entry_id)
        return sorted(ids)

    def open(
        self,
        *,
        opener_id: Any,
        entry_id: Any,
        verification_type: Any,
        session_date: Union[date, str, None] = None,
        settings: Union[SessionSettings, Mapping[str, Any], None] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceSession:
        now = now or datetime.now()
        opener_id = parse_identity(opener_id, "opener_id")
        entry = self._get_entry(parse_identity(entry_id, "course_schedule_id"))
        vtype = parse_verification_type(verification_type)
        day = _as_date(session_date, now.date())

        role = self._resolver.role_for(opener_id, entry)
        if role is None:
            raise AuthorizationError("You are not authorized to open attendance for this class")

        self._arbitrate(entry_id=entry.entry_id, session_date=day, opener_id=opener_id, role=role)

        if not isinstance(settings, SessionSettings):
            settings = SessionSettings.from_payload(settings)
        token = qr.generate_token() if vtype.accepts_qr else None

        try:
            session_id = self._sessions.create(
                entry_id=entry.entry_id,
                opener_id=opener_id,
                opener_role=role,
                session_date=day,
                start_time=now,
                verification_type=vtype,
                settings=settings,
                qr_token=token,
            )
        except DuplicateActiveSessionError:
            # Lost a race with a concurrent open; report the specific conflict.
            self._arbitrate(entry_id=entry.entry_id, session_date=day, opener_id=opener_id, role=role)
            raise

        # Storage only keys on the opener role, so an instructor session that
        # landed concurrently is detected here and ours is withdrawn.
        if role == OpenerRole.ASSISTANT and any(
            s.opener_role == OpenerRole.INSTRUCTOR
            for s in self._sessions.list_active(entry_id=entry.entry_id, session_date=day)
        ):
            self._sessions.finish(session_id=session_id, status=SessionStatus.CANCELED)
            raise InstructorSessionExistsError("The instructor already has an active session for this class today")

        logger.info(
            "Session %s opened by %s %s for entry %s on %s",
            session_id,
            role.value,
            opener_id,
            entry.entry_id,
            day,
        )

        students = self._cohorts.list_students(entry.cohort_id)
        try:
            self._recorder.initialize_absent(session_id, students)
        except Exception:
            logger.exception("Could not initialize absent records for session %s", session_id)

        return self.get_session(session_id)

    def close(self, session_id: Any, *, actor_id: Any, now: Optional[datetime] = None) -> AttendanceSession:
        session = self.get_session(session_id)
        actor_id = parse_identity(actor_id, "actor_id")
        self._require_manager(actor_id, session)
        if not session.is_active:
            raise SessionNotActiveError("Attendance session is not active")

        if not self._sessions.finish(
            session_id=session.session_id, status=SessionStatus.CLOSED, end_time=now or datetime.now()
        ):
            raise SessionNotActiveError("Attendance session is not active")
        logger.info("Session %s closed by %s", session.session_id, actor_id)
        return self.get_session(session.session_id)

    def cancel(self, session_id: Any, *, actor_id: Any) -> AttendanceSession:
        session = self.get_session(session_id)
        actor_id = parse_identity(actor_id, "actor_id")
        if actor_id != session.opener_id:
            raise AuthorizationError("Only the user who opened the session can cancel it")
        if not session.is_active:
            raise SessionNotActiveError("Attendance session is not active")

        if not self._sessions.finish(session_id=session.session_id, status=SessionStatus.CANCELED):
            raise SessionNotActiveError("Attendance session is not active")
        logger.info("Session %s canceled by %s", session.session_id, actor_id)
        return self.get_session(session.session_id)

    def get_session_details(self, session_id: Any, *, actor_id: Any) -> SessionDetails:
        session = self.get_session(session_id)
        self._require_manager(parse_identity(actor_id, "actor_id"), session)

        entry = self._timetable.get(session.entry_id)
        total = self._recorder.enrolled_for(entry) if entry is not None else 0
        return SessionDetails(
            session=session,
            counts=self._recorder.counts_for_session(session.session_id),
            total_students=total,
        )

    def list_students(self, session_id: Any, *, actor_id: Any) -> Sequence[StudentAttendanceRecord]:
        session = self.get_session(session_id)
        self._require_manager(parse_identity(actor_id, "actor_id"), session)
        return self._recorder.list_for_session(session.session_id)

    def statistics(self, entry_id: Any, *, actor_id: Any) -> AttendanceStatistics:
        """Per-entry totals, visible to the entry's instructor and assistants."""

        entry = self._get_entry(parse_identity(entry_id, "entry_id"))
        if self._resolver.role_for(parse_identity(actor_id, "actor_id"), entry) is None:
            raise AuthorizationError("You are not authorized to view statistics for this class")
        return self._recorder.statistics(entry.entry_id)

    def list_active_for_user(self, user_id: Any) -> Sequence[AttendanceSession]:
        user_id = parse_identity(user_id, "user_id")
        return self._sessions.list_active_for(opener_id=user_id, entry_ids=self._staff_entry_ids(user_id))

    def list_sessions_in_range(
        self,
        user_id: Any,
        *,
        start: Union[date, str, None] = None,
        end: Union[date, str, None] = None,
        today: Optional[date] = None,
    ) -> Sequence[AttendanceSession]:
        user_id = parse_identity(user_id, "user_id")
        today = today or date.today()
        end_date = _as_date(end, today)
        start_date = _as_date(start, end_date - timedelta(days=DEFAULT_SESSION_RANGE_DAYS))
        if start_date > end_date:
            raise ValidationError("start must be on or before end")

        return self._sessions.list_in_range(
            start=start_date,
            end=end_date,
            opener_id=user_id,
            entry_ids=self._staff_entry_ids(user_id),
        )

    def list_active_for_student(self, student_id: Any) -> Sequence[AttendanceSession]:
        student_id = parse_identity(student_id, "student_id")
        cohort_ids = self._cohorts.list_cohorts_for_student(student_id)
        if not cohort_ids:
            return []
        entries = self._timetable.list_entries(cohort_ids=cohort_ids)
        if not entries:
            return []
        return self._sessions.list_active_for(entry_ids=[e.entry_id for e in entries])

    def qr_payload(self, session_id: Any, *, actor_id: Any) -> str:
        session = self.get_session(session_id)
        self._require_manager(parse_identity(actor_id, "actor_id"), session)
        if not session.is_active:
            raise SessionNotActiveError("Attendance session is not active")
        if not session.verification_type.accepts_qr:
            raise ValidationError("This session does not use QR codes")
        return qr.payload_for(session, self._qr_namespace)
