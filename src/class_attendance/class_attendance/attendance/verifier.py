from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, BinaryIO, Optional

from ..cohorts.repository import CohortMembership
from ..common.validators import parse_identity
from ..core.constants import DEFAULT_QR_NAMESPACE
from ..core.enums import StudentAttendanceStatus, VerificationMethod
from ..core.exceptions import (
    AuthorizationError,
    InvalidQRPayloadError,
    NotEnrolledError,
    NotFoundError,
    SessionNotActiveError,
    ValidationError,
)
from ..schedules.model import TimetableEntry
from ..schedules.repository import TimetableRepository
from . import qr
from .factory import CheckInStatusFactory
from .model import AttendanceSession, StudentAttendanceRecord
from .recorder import StudentAttendanceRecorder
from .session_manager import AttendanceSessionManager

logger = logging.getLogger(__name__)


def parse_student_status(value: Any) -> StudentAttendanceStatus:
    if isinstance(value, StudentAttendanceStatus):
        return value
    try:
        return StudentAttendanceStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("Invalid attendance status")


class AttendanceVerifier:
    """Validates a check-in (QR scan or manual mark) and stores the result."""

    def __init__(
        self,
        session_manager: AttendanceSessionManager,
        timetable: TimetableRepository,
        cohorts: CohortMembership,
        recorder: StudentAttendanceRecorder,
        *,
        status_factory: Optional[CheckInStatusFactory] = None,
        qr_namespace: str = DEFAULT_QR_NAMESPACE,
    ):
        self._session_manager = session_manager
        self._timetable = timetable
        self._cohorts = cohorts
        self._recorder = recorder
        self._factory = status_factory or CheckInStatusFactory()
        self._qr_namespace = qr_namespace

    def _active_session(self, session_id: Any) -> AttendanceSession:
        session = self._session_manager.get_session(session_id)
        if not session.is_active:
            raise SessionNotActiveError("Attendance session is not active")
        return session

    def _enrolled_entry(self, session: AttendanceSession, student_id: int) -> TimetableEntry:
        entry = self._timetable.get(session.entry_id)
        if entry is None:
            raise NotFoundError("schedule not found")
        if not self._cohorts.is_member(entry.cohort_id, student_id):
            raise NotEnrolledError("Student is not enrolled in this class")
        return entry

    def mark_via_qr(
        self, session_id: Any, *, student_id: Any, raw_payload: Any, now: Optional[datetime] = None
    ) -> StudentAttendanceRecord:
        now = now or datetime.now()
        student_id = parse_identity(student_id, "student_id")
        session = self._active_session(session_id)

        if not session.verification_type.accepts_qr:
            raise InvalidQRPayloadError("This session does not accept QR check-in")
        payload = raw_payload if isinstance(raw_payload, str) else ""
        if not qr.payload_matches(session, payload, self._qr_namespace):
            raise InvalidQRPayloadError("QR code does not belong to this session")

        self._enrolled_entry(session, student_id)
        status = self._factory.decide(requested=StudentAttendanceStatus.PRESENT, session=session, now=now)

        record = self._recorder.upsert(
            session_id=session.session_id,
            student_id=student_id,
            status=status,
            check_in_time=now,
            verification_method=VerificationMethod.QR_CODE,
        )
        logger.info("Student %s checked in to session %s as %s", student_id, session.session_id, status.value)
        return record

    def mark_via_qr_image(
        self, session_id: Any, *, student_id: Any, image: BinaryIO, now: Optional[datetime] = None
    ) -> StudentAttendanceRecord:
        payload = qr.decode_image(image)
        return self.mark_via_qr(session_id, student_id=student_id, raw_payload=payload, now=now)

    def mark_manually(
        self,
        session_id: Any,
        *,
        actor_id: Any,
        student_id: Any,
        status: Any,
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> StudentAttendanceRecord:
        now = now or datetime.now()
        actor_id = parse_identity(actor_id, "actor_id")
        student_id = parse_identity(student_id, "student_id")
        requested = parse_student_status(status)

        session = self._session_manager.get_session(session_id)
        if not self._session_manager.can_manage(actor_id, session):
            raise AuthorizationError("You are not authorized to mark attendance for this session")
        if not session.is_active:
            raise SessionNotActiveError("Attendance session is not active")

        self._enrolled_entry(session, student_id)
        decided = self._factory.decide(requested=requested, session=session, now=now)
        attended = decided in (StudentAttendanceStatus.PRESENT, StudentAttendanceStatus.LATE)

        record = self._recorder.upsert(
            session_id=session.session_id,
            student_id=student_id,
            status=decided,
            check_in_time=now if attended else None,
            verification_method=VerificationMethod.MANUAL,
            verified_by=actor_id,
            notes=(notes or "").strip(),
        )
        logger.info(
            "Student %s marked %s in session %s by %s", student_id, decided.value, session.session_id, actor_id
        )
        return record
