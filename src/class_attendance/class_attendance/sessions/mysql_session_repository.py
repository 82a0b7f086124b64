from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import CloseReason, SessionState
from ..core.exceptions import AlreadyActiveError, TokenCollisionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import NewSession, Session
from .repository import SessionRepository

_COLUMNS = """
    session_id, class_id, token, opened_at, expires_at, state,
    late_threshold_seconds, closed_at, close_reason
"""


def _to_session(r: dict) -> Session:
    return Session(
        session_id=int(r["session_id"]),
        class_id=int(r["class_id"]),
        token=r["token"],
        opened_at=r["opened_at"],
        expires_at=r["expires_at"],
        state=SessionState(r["state"]),
        late_threshold=timedelta(seconds=int(r["late_threshold_seconds"])),
        closed_at=r.get("closed_at"),
        close_reason=CloseReason(r["close_reason"]) if r.get("close_reason") else None,
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, new: NewSession) -> Session:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                # active_class_id carries the UNIQUE "one live session per class" constraint
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        class_id, active_class_id, token, opened_at, expires_at,
                        state, late_threshold_seconds
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        new.class_id,
                        new.class_id,
                        new.token,
                        new.opened_at,
                        new.expires_at,
                        SessionState.ACTIVE.value,
                        int(new.late_threshold.total_seconds()),
                    ),
                )
            except IntegrityError as e:
                if is_duplicate_key(e, "uq_sessions_active_class"):
                    raise AlreadyActiveError(f"Class {new.class_id} already has an active session") from e
                if is_duplicate_key(e, "uq_sessions_token"):
                    raise TokenCollisionError("Generated token is already in use") from e
                raise

            return Session(
                session_id=int(cur.lastrowid),
                class_id=new.class_id,
                token=new.token,
                opened_at=new.opened_at,
                expires_at=new.expires_at,
                state=SessionState.ACTIVE,
                late_threshold=new.late_threshold,
            )

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_token(self, token: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE token=%s", (token,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_active_for_class(self, class_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_sessions WHERE active_class_id=%s", (int(class_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def close_if_active(self, *, session_id: int, closed_at: datetime, reason: CloseReason) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET state=%s, active_class_id=NULL, closed_at=%s, close_reason=%s
                WHERE session_id=%s AND state=%s
                """,
                (SessionState.CLOSED.value, closed_at, reason.value, int(session_id), SessionState.ACTIVE.value),
            )
            return cur.rowcount > 0

    def list_for_class(self, class_id: int) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE class_id=%s
                ORDER BY opened_at DESC, session_id DESC
                """,
                (int(class_id),),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_overdue(self, now: datetime) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE state=%s AND expires_at <= %s
                ORDER BY expires_at ASC
                """,
                (SessionState.ACTIVE.value, now),
            )
            return [_to_session(r) for r in fetchall(cur)]
