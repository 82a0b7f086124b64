from __future__ import annotations

from datetime import datetime, timedelta

from ...classes.model import ClassInfo
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Check-in at or before class start + late threshold."""

    def decide_checkin(self, *, now: datetime, class_info: ClassInfo, late_threshold: timedelta) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
