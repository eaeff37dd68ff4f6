from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.enums import StudentAttendanceStatus
from .model import AttendanceSession
from .strategies.as_requested_strategy import AsRequestedStrategy
from .strategies.base import CheckInStrategy
from .strategies.late_strategy import LateStrategy


@dataclass
class CheckInStatusFactory:
    """Factory Pattern: choose appropriate strategy based on session rules."""

    def for_check_in(
        self, *, requested: StudentAttendanceStatus, session: AttendanceSession, now: datetime
    ) -> CheckInStrategy:
        if requested != StudentAttendanceStatus.PRESENT or not session.allow_late:
            return AsRequestedStrategy()

        # Strictly greater: arriving exactly at the threshold is still on time.
        if now - session.start_time > timedelta(minutes=session.late_threshold):
            return LateStrategy()
        return AsRequestedStrategy()

    def decide(
        self, *, requested: StudentAttendanceStatus, session: AttendanceSession, now: datetime
    ) -> StudentAttendanceStatus:
        strategy = self.for_check_in(requested=requested, session=session, now=now)
        return strategy.decide(requested=requested, session=session, now=now).status
