"""Close-trigger policy.

There is no background scheduler. A session is closed either by an explicit
teacher action or lazily, the next time anything reads it after its deadline.
Both triggers go through ``_close_and_reconcile`` so closing and absence
backfill always happen together.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from ..attendance.reconciler import AbsenceReconciler
from ..core.enums import CloseReason
from ..core.exceptions import SessionNotFoundError
from .model import Session
from .repository import SessionRepository
from .service import SessionManager


@dataclass(frozen=True)
class SessionClosure:
    session: Session
    absences_written: int


class SessionLifecycle:
    def __init__(self, manager: SessionManager, reconciler: AbsenceReconciler, sessions: SessionRepository):
        self._manager = manager
        self._reconciler = reconciler
        self._sessions = sessions

    def _close_and_reconcile(self, session_id: int, now: datetime, reason: CloseReason) -> SessionClosure:
        closed = self._manager.close_session(session_id, now, reason=reason)
        # Always reconcile, even if someone else closed first: it is idempotent
        # and it repairs a close that was persisted without its backfill.
        written = self._reconciler.reconcile_absences(closed.session_id)
        return SessionClosure(session=closed, absences_written=written)

    def open_session(self, class_id: int, now: datetime) -> Session:
        stale = self._sessions.get_active_for_class(int(class_id))
        if stale and stale.is_overdue(now):
            self._close_and_reconcile(stale.session_id, now, CloseReason.EXPIRED)
        return self._manager.open_session(class_id, now)

    def end_session(self, session_id: int, now: datetime) -> SessionClosure:
        """Explicit close by the teacher."""
        return self._close_and_reconcile(session_id, now, CloseReason.EXPLICIT)

    def sweep_if_expired(self, session: Session, now: datetime) -> Session:
        if not session.is_overdue(now):
            return session
        return self._close_and_reconcile(session.session_id, now, CloseReason.EXPIRED).session

    def sweep_overdue(self, now: datetime) -> int:
        swept = 0
        for session in self._sessions.list_overdue(now):
            self.sweep_if_expired(session, now)
            swept += 1
        return swept

    def get_session(self, session_id: int, now: datetime) -> Session:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return self.sweep_if_expired(session, now)

    def list_sessions_for_class(self, class_id: int, now: datetime) -> Sequence[Session]:
        return [self.sweep_if_expired(s, now) for s in self._sessions.list_for_class(int(class_id))]
