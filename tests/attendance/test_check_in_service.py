from __future__ import annotations

from datetime import datetime, time, timedelta

import pytest

from src.class_attendance.class_attendance.attendance.repository import InsertOutcome
from src.class_attendance.class_attendance.attendance.service import CheckInService
from src.class_attendance.class_attendance.classes.model import ClassInfo
from src.class_attendance.class_attendance.core.enums import AttendanceStatus, CloseReason
from src.class_attendance.class_attendance.core.exceptions import (
    AlreadyRecordedError,
    InvalidTokenError,
    NotEnrolledError,
    SessionExpiredError,
)
from src.class_attendance.class_attendance.database.memory_store import (
    MemoryAttendanceRepository,
    MemoryClassRepository,
    MemoryDatabase,
    MemoryRosterProvider,
    MemorySessionRepository,
)
from src.class_attendance.class_attendance.sessions.model import new_session

OPENED_AT = datetime(2026, 3, 2, 9, 0, 0)


def _setup(*students: str):
    db = MemoryDatabase()
    db.add_class(ClassInfo(class_id=7, name="Physics", start_time=time(9, 0)))
    db.enroll(7, *(students or ("s1", "s2")))

    sessions = MemorySessionRepository(db)
    attendance = MemoryAttendanceRepository(db)
    session = sessions.create(
        new_session(
            class_id=7,
            token="tok-7",
            opened_at=OPENED_AT,
            window=timedelta(minutes=15),
            late_threshold=timedelta(minutes=10),
        )
    )
    svc = CheckInService(sessions, attendance, MemoryClassRepository(db), MemoryRosterProvider(db))
    return db, sessions, attendance, session, svc


def test_check_in_before_threshold_is_present():
    _, _, attendance, session, svc = _setup()

    rec = svc.submit_check_in("tok-7", "s1", OPENED_AT + timedelta(minutes=4))

    assert rec.status == AttendanceStatus.PRESENT
    assert rec.check_in_at == OPENED_AT + timedelta(minutes=4)
    assert attendance.get(session_id=session.session_id, student_id="s1") == rec


def test_check_in_after_threshold_is_late():
    _, _, _, _, svc = _setup()

    rec = svc.submit_check_in("tok-7", "s2", OPENED_AT + timedelta(minutes=12))

    assert rec.status == AttendanceStatus.LATE
    assert rec.note == "Late by 12 min"


def test_unknown_token_is_rejected():
    _, _, attendance, session, svc = _setup()

    with pytest.raises(InvalidTokenError):
        svc.submit_check_in("nope", "s1", OPENED_AT)
    with pytest.raises(InvalidTokenError):
        svc.submit_check_in("", "s1", OPENED_AT)

    assert attendance.list_for_session(session.session_id) == []


def test_deadline_passed_is_expired_even_while_state_is_active():
    _, sessions, attendance, session, svc = _setup()

    with pytest.raises(SessionExpiredError):
        svc.submit_check_in("tok-7", "s1", session.expires_at)

    assert sessions.get_by_id(session.session_id).state.value == "ACTIVE"
    assert attendance.list_for_session(session.session_id) == []


def test_explicitly_closed_session_is_expired():
    _, sessions, _, session, svc = _setup()
    sessions.close_if_active(session_id=session.session_id, closed_at=OPENED_AT, reason=CloseReason.EXPLICIT)

    with pytest.raises(SessionExpiredError):
        svc.submit_check_in("tok-7", "s1", OPENED_AT + timedelta(minutes=1))


def test_student_not_on_roster_is_rejected():
    _, _, attendance, session, svc = _setup()

    with pytest.raises(NotEnrolledError):
        svc.submit_check_in("tok-7", "intruder", OPENED_AT + timedelta(minutes=1))

    assert attendance.list_for_session(session.session_id) == []


def test_roster_is_read_at_call_time():
    db, _, _, _, svc = _setup()
    db.unenroll(7, "s2")

    with pytest.raises(NotEnrolledError):
        svc.submit_check_in("tok-7", "s2", OPENED_AT + timedelta(minutes=1))


def test_second_check_in_is_already_recorded_and_keeps_first():
    _, _, attendance, session, svc = _setup()
    first = svc.submit_check_in("tok-7", "s1", OPENED_AT + timedelta(minutes=1))

    with pytest.raises(AlreadyRecordedError):
        svc.submit_check_in("tok-7", "s1", OPENED_AT + timedelta(minutes=12))

    assert attendance.get(session_id=session.session_id, student_id="s1") == first


def test_close_landing_between_check_and_insert_writes_nothing():
    _, sessions, attendance, session, _ = _setup()

    class ClosingAttendance:
        """Closes the session right before delegating the insert."""

        def insert_check_in(self, record, *, now):
            sessions.close_if_active(session_id=session.session_id, closed_at=now, reason=CloseReason.EXPLICIT)
            return attendance.insert_check_in(record, now=now)

    db = MemoryDatabase()
    db.add_class(ClassInfo(class_id=7, name="Physics", start_time=time(9, 0)))
    db.enroll(7, "s1")
    svc = CheckInService(sessions, ClosingAttendance(), MemoryClassRepository(db), MemoryRosterProvider(db))

    with pytest.raises(SessionExpiredError):
        svc.submit_check_in("tok-7", "s1", OPENED_AT + timedelta(minutes=1))

    assert attendance.list_for_session(session.session_id) == []


def test_payload_submission_accepts_json_and_bare_token():
    _, _, _, session, svc = _setup()

    rec = svc.submit_check_in_payload(
        '{"type":"attendance","sessionId":%d,"code":"tok-7"}' % session.session_id,
        "s1",
        OPENED_AT,
    )
    assert rec.student_id == "s1"

    rec2 = svc.submit_check_in_payload("  tok-7 ", "s2", OPENED_AT)
    assert rec2.student_id == "s2"


def test_insert_outcome_reports_not_live_for_closed_session():
    _, sessions, attendance, session, svc = _setup()
    rec = svc.submit_check_in("tok-7", "s1", OPENED_AT)
    sessions.close_if_active(session_id=session.session_id, closed_at=OPENED_AT, reason=CloseReason.EXPIRED)

    assert attendance.insert_check_in(rec, now=OPENED_AT) == InsertOutcome.SESSION_NOT_LIVE
