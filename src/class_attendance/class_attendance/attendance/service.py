from __future__ import annotations

import logging
from datetime import datetime

from ..classes.repository import ClassRepository, RosterProvider
from ..common.validators import require_non_empty
from ..core.exceptions import AlreadyRecordedError, InvalidTokenError, NotEnrolledError, SessionExpiredError
from ..sessions.repository import SessionRepository
from ..tokens.qr import parse_qr_payload
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, new_check_in
from .repository import AttendanceRepository, InsertOutcome

logger = logging.getLogger(__name__)


class CheckInService:
    """Validates and records a single student's check-in against a session token.

    All checks before the insert are read-only, so a call abandoned before the
    write leaves no state behind. Exactly-once is enforced by the store's
    create-if-absent on (session_id, student_id), never by a prior lookup.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        attendance: AttendanceRepository,
        classes: ClassRepository,
        roster: RosterProvider,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._classes = classes
        self._roster = roster
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def submit_check_in(self, token: str, student_id: str, now: datetime) -> AttendanceRecord:
        token = (token or "").strip()
        student_id = require_non_empty(student_id, "student_id")

        session = self._sessions.get_by_token(token) if token else None
        if not session:
            raise InvalidTokenError("Invalid attendance code")

        if not session.is_live(now):
            raise SessionExpiredError("This attendance code has expired")

        if student_id not in self._roster.get_enrolled_students(session.class_id):
            raise NotEnrolledError("Student is not enrolled in this class")

        class_info = self._classes.get_by_id(session.class_id)
        strategy = self._factory.for_checkin(now=now, class_info=class_info, late_threshold=session.late_threshold)
        decision = strategy.decide_checkin(now=now, class_info=class_info, late_threshold=session.late_threshold)

        record = new_check_in(
            session_id=session.session_id,
            student_id=student_id,
            status=decision.status,
            now=now,
            note=decision.note,
        )

        outcome = self._attendance.insert_check_in(record, now=now)
        if outcome == InsertOutcome.DUPLICATE:
            raise AlreadyRecordedError("Attendance already recorded for this session")
        if outcome == InsertOutcome.SESSION_NOT_LIVE:
            # closed between the liveness check and the write
            raise SessionExpiredError("This attendance code has expired")

        logger.debug(
            "check-in accepted session=%s student=%s status=%s",
            session.session_id,
            student_id,
            record.status.value,
        )
        return record

    def submit_check_in_payload(self, payload: str, student_id: str, now: datetime) -> AttendanceRecord:
        """Same as submit_check_in, but takes the raw scanned QR content."""
        return self.submit_check_in(parse_qr_payload(payload), student_id, now)
