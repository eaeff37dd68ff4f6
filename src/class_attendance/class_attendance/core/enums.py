from __future__ import annotations

from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Caller role forwarded by the gateway, used for route guards."""

    ADMIN = "admin"
    LECTURER = "lecturer"
    ASSISTANT = "assistant"
    STUDENT = "student"


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def parse(cls, value: str) -> Optional["DayOfWeek"]:
        """Accept English names and the Indonesian tokens found in campus data."""

        token = (value or "").strip().lower()
        if not token:
            return None
        for day in cls:
            if day.value.lower() == token:
                return day
        return _INDONESIAN_DAYS.get(token)


_INDONESIAN_DAYS = {
    "senin": DayOfWeek.MONDAY,
    "selasa": DayOfWeek.TUESDAY,
    "rabu": DayOfWeek.WEDNESDAY,
    "kamis": DayOfWeek.THURSDAY,
    "jumat": DayOfWeek.FRIDAY,
    "sabtu": DayOfWeek.SATURDAY,
    "minggu": DayOfWeek.SUNDAY,
}


class ResourceAxis(str, Enum):
    """Independent dimensions a timetable entry can collide on."""

    ROOM = "room"
    INSTRUCTOR = "lecturer"
    COHORT = "student_group"


class OpenerRole(str, Enum):
    INSTRUCTOR = "INSTRUCTOR"
    ASSISTANT = "ASSISTANT"


class VerificationType(str, Enum):
    """How students may check in to a session."""

    QR_CODE = "QR_CODE"
    FACE_RECOGNITION = "FACE_RECOGNITION"
    MANUAL = "MANUAL"
    BOTH = "BOTH"

    @property
    def accepts_qr(self) -> bool:
        return self in (VerificationType.QR_CODE, VerificationType.BOTH)


class VerificationMethod(str, Enum):
    QR_CODE = "QR_CODE"
    MANUAL = "MANUAL"


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    CANCELED = "CANCELED"


class StudentAttendanceStatus(str, Enum):
    """Per-student status stored for each session."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"
