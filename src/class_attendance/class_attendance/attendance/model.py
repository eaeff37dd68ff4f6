from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import format_iso_date
from ..common.validators import parse_bool, parse_non_negative_int, parse_positive_int
from ..core import constants
from ..core.enums import (
    OpenerRole,
    SessionStatus,
    StudentAttendanceStatus,
    VerificationMethod,
    VerificationType,
)
from ..core.exceptions import ValidationError


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value else None


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


@dataclass(frozen=True)
class SessionSettings:
    auto_close: bool = constants.DEFAULT_AUTO_CLOSE
    duration: int = constants.DEFAULT_SESSION_DURATION_MINUTES
    allow_late: bool = constants.DEFAULT_ALLOW_LATE
    late_threshold: int = constants.DEFAULT_LATE_THRESHOLD_MINUTES
    notes: str = ""

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "SessionSettings":
        """Build settings from a request body; camelCase and snake_case keys both work.

        Missing keys keep their defaults. Minute values accept ints, integral
        floats and digit strings.
        """

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValidationError("settings must be an object")
        defaults = cls()

        auto_close = _pick(payload, "autoClose", "auto_close")
        duration = _pick(payload, "duration")
        allow_late = _pick(payload, "allowLate", "allow_late")
        late_threshold = _pick(payload, "lateThreshold", "late_threshold")
        notes = _pick(payload, "notes")

        return cls(
            auto_close=defaults.auto_close if auto_close is None else parse_bool(auto_close, "autoClose"),
            duration=defaults.duration if duration is None else parse_positive_int(duration, "duration"),
            allow_late=defaults.allow_late if allow_late is None else parse_bool(allow_late, "allowLate"),
            late_threshold=(
                defaults.late_threshold
                if late_threshold is None
                else parse_non_negative_int(late_threshold, "lateThreshold")
            ),
            notes=str(notes).strip() if notes is not None else "",
        )


@dataclass(frozen=True)
class AttendanceSession:
    session_id: int
    entry_id: int
    opener_id: int
    opener_role: OpenerRole
    session_date: date
    start_time: datetime
    verification_type: VerificationType
    status: SessionStatus
    end_time: Optional[datetime] = None
    auto_close: bool = constants.DEFAULT_AUTO_CLOSE
    duration: int = constants.DEFAULT_SESSION_DURATION_MINUTES
    allow_late: bool = constants.DEFAULT_ALLOW_LATE
    late_threshold: int = constants.DEFAULT_LATE_THRESHOLD_MINUTES
    notes: str = ""
    qr_token: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def settings(self) -> SessionSettings:
        return SessionSettings(
            auto_close=self.auto_close,
            duration=self.duration,
            allow_late=self.allow_late,
            late_threshold=self.late_threshold,
            notes=self.notes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "entry_id": self.entry_id,
            "opener_id": self.opener_id,
            "opener_role": self.opener_role.value,
            "session_date": format_iso_date(self.session_date),
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "verification_type": self.verification_type.value,
            "status": self.status.value,
            "settings": {
                "autoClose": self.auto_close,
                "duration": self.duration,
                "allowLate": self.allow_late,
                "lateThreshold": self.late_threshold,
                "notes": self.notes,
            },
        }


@dataclass(frozen=True)
class StudentAttendanceRecord:
    record_id: int
    session_id: int
    student_id: int
    status: StudentAttendanceStatus
    check_in_time: Optional[datetime] = None
    verification_method: Optional[VerificationMethod] = None
    verified_by: Optional[int] = None
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "session_id": self.session_id,
            "student_id": self.student_id,
            "status": self.status.value,
            "check_in_time": _iso(self.check_in_time),
            "verification_method": self.verification_method.value if self.verification_method else None,
            "verified_by": self.verified_by,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class AttendanceHistoryRow:
    """Read-model for a student's history list (record joined with its session)."""

    record: StudentAttendanceRecord
    entry_id: int
    session_date: date
    session_status: SessionStatus

    def to_dict(self) -> dict[str, Any]:
        payload = self.record.to_dict()
        payload.update(
            {
                "entry_id": self.entry_id,
                "session_date": format_iso_date(self.session_date),
                "session_status": self.session_status.value,
            }
        )
        return payload


@dataclass(frozen=True)
class StatusCounts:
    present: int = 0
    late: int = 0
    absent: int = 0
    excused: int = 0

    @classmethod
    def from_mapping(cls, counts: Mapping[StudentAttendanceStatus, int]) -> "StatusCounts":
        return cls(
            present=int(counts.get(StudentAttendanceStatus.PRESENT, 0)),
            late=int(counts.get(StudentAttendanceStatus.LATE, 0)),
            absent=int(counts.get(StudentAttendanceStatus.ABSENT, 0)),
            excused=int(counts.get(StudentAttendanceStatus.EXCUSED, 0)),
        )


@dataclass(frozen=True)
class SessionDetails:
    session: AttendanceSession
    counts: StatusCounts = field(default_factory=StatusCounts)
    total_students: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload = self.session.to_dict()
        payload.update(
            {
                "total_students": self.total_students,
                "present_count": self.counts.present,
                "late_count": self.counts.late,
                "absent_count": self.counts.absent,
                "excused_count": self.counts.excused,
            }
        )
        return payload


@dataclass(frozen=True)
class AttendanceStatistics:
    total_sessions: int = 0
    total_students: int = 0
    total_present: int = 0
    total_late: int = 0
    total_absent: int = 0
    total_excused: int = 0
    average_attendance: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
