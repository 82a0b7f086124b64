"""In-process store with the same atomic primitives as the MySQL schema.

One lock per database stands in for the transactional store: each repository
method is a single critical section, mirroring one MySQL statement.
"""
from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Sequence, Set, Tuple

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository, InsertOutcome
from ..classes.model import ClassInfo
from ..classes.repository import ClassRepository, RosterProvider
from ..core.enums import CloseReason, SessionState
from ..core.exceptions import AlreadyActiveError, TokenCollisionError
from ..sessions.model import NewSession, Session
from ..sessions.repository import SessionRepository


class MemoryDatabase:
    def __init__(self):
        self.lock = threading.Lock()
        self.classes: Dict[int, ClassInfo] = {}
        self.enrollments: Dict[int, Set[str]] = {}
        self.sessions: Dict[int, Session] = {}
        self.token_index: Dict[str, int] = {}
        self.active_by_class: Dict[int, int] = {}
        self.records: Dict[Tuple[int, str], AttendanceRecord] = {}
        self._next_session_id = 0

    def next_session_id(self) -> int:
        self._next_session_id += 1
        return self._next_session_id

    # Seeding helpers for the collaborator-owned tables.
    def add_class(self, class_info: ClassInfo) -> None:
        with self.lock:
            self.classes[class_info.class_id] = class_info
            self.enrollments.setdefault(class_info.class_id, set())

    def enroll(self, class_id: int, *student_ids: str) -> None:
        with self.lock:
            self.enrollments.setdefault(int(class_id), set()).update(str(s) for s in student_ids)

    def unenroll(self, class_id: int, student_id: str) -> None:
        with self.lock:
            self.enrollments.get(int(class_id), set()).discard(str(student_id))


class MemoryClassRepository(ClassRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def get_by_id(self, class_id: int) -> Optional[ClassInfo]:
        with self._db.lock:
            return self._db.classes.get(int(class_id))


class MemoryRosterProvider(RosterProvider):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def get_enrolled_students(self, class_id: int) -> FrozenSet[str]:
        with self._db.lock:
            return frozenset(self._db.enrollments.get(int(class_id), ()))


class MemorySessionRepository(SessionRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def create(self, new: NewSession) -> Session:
        with self._db.lock:
            if new.class_id in self._db.active_by_class:
                raise AlreadyActiveError(f"Class {new.class_id} already has an active session")
            if new.token in self._db.token_index:
                raise TokenCollisionError("Generated token is already in use")

            session = Session(
                session_id=self._db.next_session_id(),
                class_id=new.class_id,
                token=new.token,
                opened_at=new.opened_at,
                expires_at=new.expires_at,
                state=SessionState.ACTIVE,
                late_threshold=new.late_threshold,
            )
            self._db.sessions[session.session_id] = session
            self._db.token_index[session.token] = session.session_id
            self._db.active_by_class[session.class_id] = session.session_id
            return session

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with self._db.lock:
            return self._db.sessions.get(int(session_id))

    def get_by_token(self, token: str) -> Optional[Session]:
        with self._db.lock:
            session_id = self._db.token_index.get(token)
            return self._db.sessions.get(session_id) if session_id is not None else None

    def get_active_for_class(self, class_id: int) -> Optional[Session]:
        with self._db.lock:
            session_id = self._db.active_by_class.get(int(class_id))
            return self._db.sessions.get(session_id) if session_id is not None else None

    def close_if_active(self, *, session_id: int, closed_at: datetime, reason: CloseReason) -> bool:
        with self._db.lock:
            session = self._db.sessions.get(int(session_id))
            if not session or session.state != SessionState.ACTIVE:
                return False
            self._db.sessions[session.session_id] = replace(
                session,
                state=SessionState.CLOSED,
                closed_at=closed_at,
                close_reason=reason,
            )
            self._db.active_by_class.pop(session.class_id, None)
            return True

    def list_for_class(self, class_id: int) -> Sequence[Session]:
        with self._db.lock:
            items = [s for s in self._db.sessions.values() if s.class_id == int(class_id)]
        items.sort(key=lambda s: (s.opened_at, s.session_id), reverse=True)
        return items

    def list_overdue(self, now: datetime) -> Sequence[Session]:
        with self._db.lock:
            items = [s for s in self._db.sessions.values() if s.is_overdue(now)]
        items.sort(key=lambda s: s.expires_at)
        return items


class MemoryAttendanceRepository(AttendanceRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def insert_check_in(self, record: AttendanceRecord, *, now: datetime) -> InsertOutcome:
        key = (record.session_id, record.student_id)
        with self._db.lock:
            session = self._db.sessions.get(record.session_id)
            if not session or not session.is_live(now):
                return InsertOutcome.SESSION_NOT_LIVE
            if key in self._db.records:
                return InsertOutcome.DUPLICATE
            self._db.records[key] = record
            return InsertOutcome.CREATED

    def insert_if_absent(self, record: AttendanceRecord) -> bool:
        key = (record.session_id, record.student_id)
        with self._db.lock:
            if key in self._db.records:
                return False
            self._db.records[key] = record
            return True

    def get(self, *, session_id: int, student_id: str) -> Optional[AttendanceRecord]:
        with self._db.lock:
            return self._db.records.get((int(session_id), str(student_id)))

    def recorded_student_ids(self, session_id: int) -> FrozenSet[str]:
        with self._db.lock:
            return frozenset(sid for (sess, sid) in self._db.records if sess == int(session_id))

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with self._db.lock:
            items = [r for (sess, _), r in self._db.records.items() if sess == int(session_id)]
        items.sort(key=lambda r: r.student_id)
        return items

    def list_for_student(self, student_id: str, *, class_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        with self._db.lock:
            items = []
            for (sess, sid), r in self._db.records.items():
                if sid != str(student_id):
                    continue
                session = self._db.sessions.get(sess)
                if class_id is not None and (not session or session.class_id != int(class_id)):
                    continue
                items.append((session.opened_at if session else r.recorded_at, sess, r))
        items.sort(key=lambda t: (t[0], t[1]), reverse=True)
        return [r for _, _, r in items]

    def list_for_class(self, class_id: int) -> Sequence[AttendanceRecord]:
        with self._db.lock:
            items = []
            for (sess, sid), r in self._db.records.items():
                session = self._db.sessions.get(sess)
                if not session or session.class_id != int(class_id):
                    continue
                items.append((session.opened_at, sess, sid, r))
        # newest session first, students alphabetical within a session
        items.sort(key=lambda t: t[2])
        items.sort(key=lambda t: (t[0], t[1]), reverse=True)
        return [r for _, _, _, r in items]
