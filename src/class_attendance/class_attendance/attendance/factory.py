from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..classes.model import ClassInfo
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(
        self,
        *,
        now: datetime,
        class_info: Optional[ClassInfo],
        late_threshold: timedelta,
    ) -> AttendanceStrategy:
        if not class_info:
            return OnTimeStrategy()

        # Only the time of day matters; the session date is whatever day the class meets.
        class_start = datetime.combine(now.date(), class_info.start_time)
        if now <= class_start + late_threshold:
            return OnTimeStrategy()
        return LateStrategy()
