from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, time, timedelta

import pytest

from src.class_attendance.class_attendance.classes.model import ClassInfo
from src.class_attendance.class_attendance.common.datetime_utils import FixedClock
from src.class_attendance.class_attendance.container import build_container
from src.class_attendance.class_attendance.core.enums import AttendanceStatus, CloseReason, SessionState
from src.class_attendance.class_attendance.core.exceptions import SessionExpiredError, SessionNotFoundError

T0 = datetime(2026, 3, 2, 9, 0, 0)


def _container():
    clock = FixedClock(T0)
    c = build_container(store_backend="memory", clock=clock)
    c.memory_db.add_class(ClassInfo(class_id=1, name="Biology", start_time=time(9, 0)))
    c.memory_db.enroll(1, "ann", "ben", "cid")
    return c, clock


def test_end_session_closes_and_backfills():
    c, clock = _container()
    s = c.lifecycle.open_session(1, clock.now())
    c.check_in_service.submit_check_in(s.token, "ann", clock.advance(minutes=2))

    closure = c.lifecycle.end_session(s.session_id, clock.advance(minutes=1))

    assert closure.session.state == SessionState.CLOSED
    assert closure.session.close_reason == CloseReason.EXPLICIT
    assert closure.absences_written == 2


def test_end_session_twice_is_harmless():
    c, clock = _container()
    s = c.lifecycle.open_session(1, clock.now())
    c.lifecycle.end_session(s.session_id, clock.now())

    again = c.lifecycle.end_session(s.session_id, clock.advance(minutes=1))

    assert again.absences_written == 0
    assert len(c.attendance_repo.list_for_session(s.session_id)) == 3


def test_end_unknown_session():
    c, clock = _container()

    with pytest.raises(SessionNotFoundError):
        c.lifecycle.end_session(77, clock.now())


def test_listing_sessions_sweeps_expired_one():
    c, clock = _container()
    s = c.lifecycle.open_session(1, clock.now())

    listed = c.lifecycle.list_sessions_for_class(1, clock.advance(minutes=15))

    assert [x.session_id for x in listed] == [s.session_id]
    assert listed[0].state == SessionState.CLOSED
    assert listed[0].close_reason == CloseReason.EXPIRED
    statuses = {r.status for r in c.attendance_repo.list_for_session(s.session_id)}
    assert statuses == {AttendanceStatus.ABSENT}


def test_listing_before_deadline_leaves_session_active():
    c, clock = _container()
    s = c.lifecycle.open_session(1, clock.now())

    listed = c.lifecycle.list_sessions_for_class(1, clock.advance(minutes=14))

    assert listed[0].state == SessionState.ACTIVE
    assert c.attendance_repo.list_for_session(s.session_id) == []


def test_session_attendance_query_sweeps():
    c, clock = _container()
    s = c.lifecycle.open_session(1, clock.now())
    c.check_in_service.submit_check_in(s.token, "ben", clock.advance(minutes=1))

    data = c.report_service.list_attendance_for_session(s.session_id, clock.advance(minutes=30))

    assert data.session.state == SessionState.CLOSED
    assert {(r.student_id, r.status) for r in data.records} == {
        ("ann", AttendanceStatus.ABSENT),
        ("ben", AttendanceStatus.PRESENT),
        ("cid", AttendanceStatus.ABSENT),
    }


def test_open_replaces_overdue_active_session():
    c, clock = _container()
    stale = c.lifecycle.open_session(1, clock.now())

    fresh = c.lifecycle.open_session(1, clock.advance(minutes=40))

    assert fresh.session_id != stale.session_id
    assert c.sessions_repo.get_by_id(stale.session_id).state == SessionState.CLOSED
    assert len(c.attendance_repo.list_for_session(stale.session_id)) == 3


def test_student_query_sweeps_all_overdue_sessions():
    c, clock = _container()
    s = c.lifecycle.open_session(1, clock.now())

    records = c.report_service.list_attendance_for_student("cid", clock.advance(minutes=20))

    assert [(r.session_id, r.status) for r in records] == [(s.session_id, AttendanceStatus.ABSENT)]


def test_student_summary_counts_and_rate():
    c, clock = _container()
    # on time at 09:00, late at 10:14 (class starts 09:00 every day), absent at 11:00
    for offset in (0, 14, None):
        s = c.lifecycle.open_session(1, clock.now())
        if offset is not None:
            c.check_in_service.submit_check_in(s.token, "ann", clock.now() + timedelta(minutes=offset))
        c.lifecycle.end_session(s.session_id, clock.now() + timedelta(minutes=14))
        clock.advance(minutes=60)

    summary = c.report_service.student_summary("ann", clock.now(), class_id=1)

    assert summary.total_sessions == 3
    assert summary.present + summary.late == 2
    assert summary.absent == 1
    assert summary.attendance_rate == 66.7


def test_class_attendance_sweeps_before_listing():
    c, clock = _container()
    first = c.lifecycle.open_session(1, clock.now())
    c.check_in_service.submit_check_in(first.token, "ann", clock.advance(minutes=3))
    c.lifecycle.end_session(first.session_id, clock.advance(minutes=2))
    second = c.lifecycle.open_session(1, clock.advance(minutes=60))
    c.check_in_service.submit_check_in(second.token, "cid", clock.advance(minutes=1))

    records = c.report_service.list_attendance_for_class(1, clock.advance(minutes=20))

    assert c.sessions_repo.get_by_id(second.session_id).close_reason == CloseReason.EXPIRED
    assert [(r.session_id, r.student_id, r.status) for r in records] == [
        (second.session_id, "ann", AttendanceStatus.ABSENT),
        (second.session_id, "ben", AttendanceStatus.ABSENT),
        (second.session_id, "cid", AttendanceStatus.LATE),
        (first.session_id, "ann", AttendanceStatus.PRESENT),
        (first.session_id, "ben", AttendanceStatus.ABSENT),
        (first.session_id, "cid", AttendanceStatus.ABSENT),
    ]


ROSTER = [f"s{i:02d}" for i in range(20)]


def _race_round():
    clock = FixedClock(datetime(2026, 3, 2, 14, 45))
    c = build_container(store_backend="memory", clock=clock)
    c.memory_db.add_class(ClassInfo(class_id=1, name="Physics", start_time=time(14, 45)))
    c.memory_db.enroll(1, *ROSTER)
    s = c.lifecycle.open_session(1, clock.now())

    last_second = datetime(2026, 3, 2, 14, 59)
    after_deadline = datetime(2026, 3, 2, 15, 0)
    barrier = threading.Barrier(len(ROSTER) + 4)

    def check_in(student_id):
        barrier.wait()
        try:
            c.check_in_service.submit_check_in(s.token, student_id, last_second)
            return student_id
        except SessionExpiredError:
            return None

    def close():
        barrier.wait()
        c.lifecycle.end_session(s.session_id, last_second)

    def sweep():
        barrier.wait()
        c.lifecycle.list_sessions_for_class(1, after_deadline)

    with ThreadPoolExecutor(max_workers=len(ROSTER) + 4) as pool:
        checkins = [pool.submit(check_in, sid) for sid in ROSTER]
        closers = [pool.submit(close) for _ in range(2)] + [pool.submit(sweep) for _ in range(2)]
        for f in closers:
            f.result()
        accepted = {f.result() for f in checkins} - {None}

    return c, s, accepted


def test_close_sweep_and_last_second_check_ins_race():
    for _ in range(30):
        c, s, accepted = _race_round()

        assert c.sessions_repo.get_by_id(s.session_id).state == SessionState.CLOSED
        records = c.attendance_repo.list_for_session(s.session_id)
        assert sorted(r.student_id for r in records) == ROSTER
        for r in records:
            expected = AttendanceStatus.PRESENT if r.student_id in accepted else AttendanceStatus.ABSENT
            assert r.status == expected
