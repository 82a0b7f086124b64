from __future__ import annotations

from datetime import datetime, time, timedelta

import pytest

from src.class_attendance.class_attendance.classes.model import ClassInfo
from src.class_attendance.class_attendance.core.enums import CloseReason, SessionState
from src.class_attendance.class_attendance.core.exceptions import (
    AlreadyActiveError,
    ClassNotFoundError,
    SessionNotFoundError,
    TokenCollisionError,
    ValidationError,
)
from src.class_attendance.class_attendance.database.memory_store import (
    MemoryClassRepository,
    MemoryDatabase,
    MemorySessionRepository,
)
from src.class_attendance.class_attendance.sessions.model import new_session
from src.class_attendance.class_attendance.sessions.service import SessionManager

NOW = datetime(2026, 3, 2, 8, 55, 0)


def _manager(**kwargs):
    db = MemoryDatabase()
    db.add_class(ClassInfo(class_id=1, name="Math", start_time=time(9, 0)))
    db.add_class(ClassInfo(class_id=2, name="Art", start_time=time(13, 0)))
    sessions = MemorySessionRepository(db)
    return SessionManager(sessions, MemoryClassRepository(db), **kwargs), sessions


def test_open_session_sets_window_and_token():
    mgr, sessions = _manager()

    s = mgr.open_session(1, NOW)

    assert s.state == SessionState.ACTIVE
    assert s.opened_at == NOW
    assert s.expires_at == NOW + timedelta(minutes=15)
    assert s.late_threshold == timedelta(minutes=15)
    assert len(s.token) >= 32
    assert sessions.get_by_token(s.token) == s


def test_open_session_uses_configured_window():
    mgr, _ = _manager(window=timedelta(minutes=5), late_threshold=timedelta(minutes=2))

    s = mgr.open_session(1, NOW)

    assert s.expires_at == NOW + timedelta(minutes=5)
    assert s.late_threshold == timedelta(minutes=2)


def test_open_session_unknown_class():
    mgr, _ = _manager()

    with pytest.raises(ClassNotFoundError):
        mgr.open_session(404, NOW)


def test_open_session_rejects_invalid_class_id():
    mgr, _ = _manager()

    with pytest.raises(ValidationError):
        mgr.open_session(0, NOW)


def test_second_active_session_for_same_class_conflicts():
    mgr, _ = _manager()
    mgr.open_session(1, NOW)

    with pytest.raises(AlreadyActiveError):
        mgr.open_session(1, NOW + timedelta(minutes=1))

    # other classes are unaffected
    assert mgr.open_session(2, NOW).class_id == 2


def test_reopen_allowed_after_close_with_fresh_token():
    mgr, _ = _manager()
    first = mgr.open_session(1, NOW)
    mgr.close_session(first.session_id, NOW + timedelta(minutes=2))

    second = mgr.open_session(1, NOW + timedelta(minutes=3))

    assert second.session_id != first.session_id
    assert second.token != first.token


def test_store_rejects_reused_token():
    mgr, sessions = _manager(token_generator=lambda: "fixed-token")
    first = mgr.open_session(1, NOW)
    mgr.close_session(first.session_id, NOW)

    with pytest.raises(TokenCollisionError):
        mgr.open_session(1, NOW + timedelta(minutes=1))

    assert sessions.get_active_for_class(1) is None


def test_close_session_is_idempotent():
    mgr, _ = _manager()
    s = mgr.open_session(1, NOW)

    closed = mgr.close_session(s.session_id, NOW + timedelta(minutes=3))
    again = mgr.close_session(s.session_id, NOW + timedelta(minutes=9), reason=CloseReason.EXPIRED)

    assert closed.state == SessionState.CLOSED
    assert again.state == SessionState.CLOSED
    # the first close wins; the second changes nothing
    assert again.closed_at == NOW + timedelta(minutes=3)
    assert again.close_reason == CloseReason.EXPLICIT


def test_close_unknown_session():
    mgr, _ = _manager()

    with pytest.raises(SessionNotFoundError):
        mgr.close_session(42, NOW)


def test_is_live_gates_on_deadline_and_state():
    mgr, _ = _manager()
    s = mgr.open_session(1, NOW)

    assert mgr.is_live(s, NOW)
    assert mgr.is_live(s, s.expires_at - timedelta(seconds=1))
    assert not mgr.is_live(s, s.expires_at)

    closed = mgr.close_session(s.session_id, NOW)
    assert not mgr.is_live(closed, NOW)


def test_new_session_validates_window():
    with pytest.raises(ValidationError):
        new_session(class_id=1, token="t", opened_at=NOW, window=timedelta(0), late_threshold=timedelta(0))
    with pytest.raises(ValidationError):
        new_session(class_id=1, token="  ", opened_at=NOW, window=timedelta(minutes=1), late_threshold=timedelta(0))


def test_open_session_drops_sub_second_precision():
    mgr, sessions = _manager()

    s = mgr.open_session(1, NOW.replace(microsecond=734_512))

    assert s.opened_at == NOW
    assert s.expires_at == NOW + timedelta(minutes=15)
    assert sessions.get_by_id(s.session_id).expires_at == s.expires_at
