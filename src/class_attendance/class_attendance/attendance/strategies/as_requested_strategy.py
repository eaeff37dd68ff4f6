from __future__ import annotations

from datetime import datetime

from ...core.enums import StudentAttendanceStatus
from ..model import AttendanceSession
from .base import CheckInStrategy, StatusDecision


class AsRequestedStrategy(CheckInStrategy):
    """On-time check-in, or a manual status that is not subject to lateness."""

    def decide(
        self, *, requested: StudentAttendanceStatus, session: AttendanceSession, now: datetime
    ) -> StatusDecision:
        return StatusDecision(status=requested)
