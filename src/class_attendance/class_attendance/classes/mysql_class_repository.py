from __future__ import annotations

from typing import FrozenSet, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import ClassInfo
from .repository import ClassRepository, RosterProvider


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: int) -> Optional[ClassInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, class_name, start_time, teacher_id, location
                FROM classes
                WHERE class_id=%s
                """,
                (int(class_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ClassInfo(
                class_id=int(r["class_id"]),
                name=r["class_name"],
                start_time=normalize_mysql_time(r["start_time"]),
                teacher_id=r.get("teacher_id"),
                location=r.get("location"),
            )


class MySQLRosterProvider(RosterProvider):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_enrolled_students(self, class_id: int) -> FrozenSet[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT student_id FROM class_enrollments WHERE class_id=%s",
                (int(class_id),),
            )
            return frozenset(str(r["student_id"]) for r in fetchall(cur))
