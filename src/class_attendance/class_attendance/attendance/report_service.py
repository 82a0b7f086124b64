from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import format_iso
from ..core.enums import AttendanceStatus
from ..sessions.lifecycle import SessionLifecycle
from ..sessions.model import Session
from .model import AttendanceRecord, AttendanceSummary
from .repository import AttendanceRepository


@dataclass(frozen=True)
class SessionAttendance:
    session: Session
    records: Sequence[AttendanceRecord]


class AttendanceReportService:
    """Read side. Every query runs the lazy expiry sweep before reading."""

    def __init__(self, lifecycle: SessionLifecycle, attendance: AttendanceRepository):
        self._lifecycle = lifecycle
        self._attendance = attendance

    def list_attendance_for_session(self, session_id: int, now: datetime) -> SessionAttendance:
        session = self._lifecycle.get_session(session_id, now)
        return SessionAttendance(session=session, records=self._attendance.list_for_session(session.session_id))

    def list_attendance_for_class(self, class_id: int, now: datetime) -> Sequence[AttendanceRecord]:
        # listing the sessions closes and backfills any overdue one first
        self._lifecycle.list_sessions_for_class(class_id, now)
        return self._attendance.list_for_class(class_id)

    def list_attendance_for_student(
        self,
        student_id: str,
        now: datetime,
        *,
        class_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        if class_id is not None:
            self._lifecycle.list_sessions_for_class(class_id, now)
        else:
            self._lifecycle.sweep_overdue(now)
        return self._attendance.list_for_student(student_id, class_id=class_id)

    def student_summary(self, student_id: str, now: datetime, *, class_id: Optional[int] = None) -> AttendanceSummary:
        records = self.list_attendance_for_student(student_id, now, class_id=class_id)
        return summarize(student_id, records)


def summarize(student_id: str, records: Sequence[AttendanceRecord]) -> AttendanceSummary:
    counts = {status: 0 for status in AttendanceStatus}
    for r in records:
        counts[r.status] += 1

    total = len(records)
    attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE]
    rate = round(attended * 100.0 / total, 1) if total else 0.0

    return AttendanceSummary(
        student_id=student_id,
        total_sessions=total,
        present=counts[AttendanceStatus.PRESENT],
        late=counts[AttendanceStatus.LATE],
        absent=counts[AttendanceStatus.ABSENT],
        excused=counts[AttendanceStatus.EXCUSED],
        attendance_rate=rate,
    )


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "session_id": r.session_id,
        "student_id": r.student_id,
        "status": r.status.value,
        "check_in_at": format_iso(r.check_in_at),
        "recorded_at": format_iso(r.recorded_at),
        "note": r.note or "",
    }


def session_to_dict(s: Session) -> dict:
    return {
        "session_id": s.session_id,
        "class_id": s.class_id,
        "state": s.state.value,
        "opened_at": format_iso(s.opened_at),
        "expires_at": format_iso(s.expires_at),
        "closed_at": format_iso(s.closed_at),
        "close_reason": s.close_reason.value if s.close_reason else None,
        "late_threshold_minutes": int(s.late_threshold.total_seconds() // 60),
    }
