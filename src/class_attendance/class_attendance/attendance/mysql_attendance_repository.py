from __future__ import annotations

from datetime import datetime
from typing import FrozenSet, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, SessionState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord
from .repository import AttendanceRepository, InsertOutcome


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        session_id=int(r["session_id"]),
        student_id=str(r["student_id"]),
        status=AttendanceStatus(r["status"]),
        check_in_at=r.get("check_in_at"),
        recorded_at=r["recorded_at"],
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_check_in(self, record: AttendanceRecord, *, now: datetime) -> InsertOutcome:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                # INSERT ... SELECT locks the session row, so it serializes with close_if_active
                cur.execute(
                    """
                    INSERT INTO attendance_records(session_id, student_id, status, check_in_at, recorded_at, note)
                    SELECT s.session_id, %s, %s, %s, %s, %s
                    FROM attendance_sessions s
                    WHERE s.session_id=%s AND s.state=%s AND s.expires_at > %s
                    """,
                    (
                        record.student_id,
                        record.status.value,
                        record.check_in_at,
                        record.recorded_at,
                        record.note,
                        record.session_id,
                        SessionState.ACTIVE.value,
                        now,
                    ),
                )
            except IntegrityError as e:
                if is_duplicate_key(e):
                    return InsertOutcome.DUPLICATE
                raise
            return InsertOutcome.CREATED if cur.rowcount > 0 else InsertOutcome.SESSION_NOT_LIVE

    def insert_if_absent(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_records(session_id, student_id, status, check_in_at, recorded_at, note)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.session_id,
                        record.student_id,
                        record.status.value,
                        record.check_in_at,
                        record.recorded_at,
                        record.note,
                    ),
                )
            except IntegrityError as e:
                if is_duplicate_key(e):
                    return False
                raise
            return True

    def get(self, *, session_id: int, student_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, student_id, status, check_in_at, recorded_at, note
                FROM attendance_records
                WHERE session_id=%s AND student_id=%s
                """,
                (int(session_id), student_id),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def recorded_student_ids(self, session_id: int) -> FrozenSet[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT student_id FROM attendance_records WHERE session_id=%s", (int(session_id),))
            return frozenset(str(r["student_id"]) for r in fetchall(cur))

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, student_id, status, check_in_at, recorded_at, note
                FROM attendance_records
                WHERE session_id=%s
                ORDER BY student_id ASC
                """,
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: str, *, class_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        clauses = ["ar.student_id=%s"]
        params: list[object] = [student_id]
        if class_id is not None:
            clauses.append("s.class_id=%s")
            params.append(int(class_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ar.session_id, ar.student_id, ar.status, ar.check_in_at, ar.recorded_at, ar.note
                FROM attendance_records ar
                JOIN attendance_sessions s ON s.session_id = ar.session_id
                WHERE {where}
                ORDER BY s.opened_at DESC, ar.session_id DESC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_class(self, class_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ar.session_id, ar.student_id, ar.status, ar.check_in_at, ar.recorded_at, ar.note
                FROM attendance_records ar
                JOIN attendance_sessions s ON s.session_id = ar.session_id
                WHERE s.class_id=%s
                ORDER BY s.opened_at DESC, ar.session_id DESC, ar.student_id ASC
                """,
                (int(class_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]
