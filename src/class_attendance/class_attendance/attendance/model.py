from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.validators import require_non_empty, require_positive_id
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the single outcome for one (session, student) pair."""

    session_id: int
    student_id: str
    status: AttendanceStatus
    check_in_at: Optional[datetime]
    recorded_at: datetime
    note: Optional[str] = None


@dataclass(frozen=True)
class AttendanceSummary:
    """Per-student totals across sessions (read model for dashboards)."""

    student_id: str
    total_sessions: int
    present: int
    late: int
    absent: int
    excused: int
    attendance_rate: float


def new_check_in(
    *,
    session_id: int,
    student_id: str,
    status: AttendanceStatus,
    now: datetime,
    note: Optional[str] = None,
) -> AttendanceRecord:
    if status not in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
        raise ValidationError(f"A check-in cannot have status {status.value}")
    return AttendanceRecord(
        session_id=require_positive_id(session_id, "session_id"),
        student_id=require_non_empty(student_id, "student_id"),
        status=status,
        check_in_at=now,
        recorded_at=now,
        note=note,
    )


def new_absence(*, session_id: int, student_id: str, recorded_at: datetime) -> AttendanceRecord:
    return AttendanceRecord(
        session_id=require_positive_id(session_id, "session_id"),
        student_id=require_non_empty(student_id, "student_id"),
        status=AttendanceStatus.ABSENT,
        check_in_at=None,
        recorded_at=recorded_at,
    )
