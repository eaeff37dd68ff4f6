from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import StudentAttendanceStatus
from ..model import AttendanceSession


@dataclass(frozen=True)
class StatusDecision:
    status: StudentAttendanceStatus


class CheckInStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide a student's stored status."""

    @abstractmethod
    def decide(
        self, *, requested: StudentAttendanceStatus, session: AttendanceSession, now: datetime
    ) -> StatusDecision:
        raise NotImplementedError
