from __future__ import annotations

from datetime import datetime, timedelta

from ...classes.model import ClassInfo
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in."""

    def decide_checkin(self, *, now: datetime, class_info: ClassInfo, late_threshold: timedelta) -> StatusDecision:
        class_start = datetime.combine(now.date(), class_info.start_time)
        late_minutes = int((now - class_start).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {late_minutes} min")
