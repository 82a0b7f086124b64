from __future__ import annotations

import logging

from ..classes.repository import RosterProvider
from ..common.datetime_utils import Clock
from ..core.enums import SessionState
from ..core.exceptions import SessionNotFoundError
from ..sessions.repository import SessionRepository
from .model import new_absence
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AbsenceReconciler:
    """Backfills ABSENT records for roster members who never checked in.

    Safe to re-run: every insert is create-if-absent, and a conflict means a
    real check-in (or an earlier run) already owns that pair.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        attendance: AttendanceRepository,
        roster: RosterProvider,
        clock: Clock,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._roster = roster
        self._clock = clock

    def reconcile_absences(self, session_id: int) -> int:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise SessionNotFoundError(f"Session {session_id} not found")

        if session.state == SessionState.ACTIVE:
            logger.warning("reconciling session %s while it is still ACTIVE; result may be incomplete", session_id)

        roster = self._roster.get_enrolled_students(session.class_id)
        recorded = self._attendance.recorded_student_ids(session.session_id)
        missing = sorted(roster - recorded)

        recorded_at = self._clock.now()
        written = 0
        for student_id in missing:
            record = new_absence(session_id=session.session_id, student_id=student_id, recorded_at=recorded_at)
            if self._attendance.insert_if_absent(record):
                written += 1
            # else: lost the race to a genuine check-in, which wins

        logger.info(
            "reconciled session=%s roster=%d already_recorded=%d absences_written=%d",
            session.session_id,
            len(roster),
            len(recorded),
            written,
        )
        return written
