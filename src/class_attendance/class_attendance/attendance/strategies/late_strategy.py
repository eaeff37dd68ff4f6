from __future__ import annotations

from datetime import datetime

from ...core.enums import StudentAttendanceStatus
from ..model import AttendanceSession
from .base import CheckInStrategy, StatusDecision


class LateStrategy(CheckInStrategy):
    """Late check-in."""

    def decide(
        self, *, requested: StudentAttendanceStatus, session: AttendanceSession, now: datetime
    ) -> StatusDecision:
        return StatusDecision(status=StudentAttendanceStatus.LATE)
