from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.reconciler import AbsenceReconciler
from .attendance.report_service import AttendanceReportService
from .attendance.repository import AttendanceRepository
from .attendance.service import CheckInService
from .classes.mysql_class_repository import MySQLClassRepository, MySQLRosterProvider
from .classes.repository import ClassRepository, RosterProvider
from .common.datetime_utils import Clock, SystemClock
from .common.validators import require_positive_minutes
from .core.constants import DEFAULT_LATE_THRESHOLD_MINUTES, DEFAULT_SESSION_WINDOW_MINUTES
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .database.memory_store import (
    MemoryAttendanceRepository,
    MemoryClassRepository,
    MemoryDatabase,
    MemoryRosterProvider,
    MemorySessionRepository,
)
from .sessions.lifecycle import SessionLifecycle
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionManager


@dataclass(frozen=True)
class Container:
    clock: Clock

    classes_repo: ClassRepository
    roster: RosterProvider
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository

    session_manager: SessionManager
    check_in_service: CheckInService
    reconciler: AbsenceReconciler
    lifecycle: SessionLifecycle
    report_service: AttendanceReportService

    memory_db: Optional[MemoryDatabase] = None


def build_container(
    *,
    db_config: Optional[dict] = None,
    store_backend: str = "mysql",
    window_minutes: int = DEFAULT_SESSION_WINDOW_MINUTES,
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
    clock: Optional[Clock] = None,
    memory_db: Optional[MemoryDatabase] = None,
) -> Container:
    window = require_positive_minutes(window_minutes, "SESSION_WINDOW_MINUTES")
    late_threshold = require_positive_minutes(late_threshold_minutes, "LATE_THRESHOLD_MINUTES", allow_zero=True)
    clock = clock or SystemClock()

    backend = (store_backend or "mysql").lower()
    if backend == "memory":
        memory_db = memory_db or MemoryDatabase()
        classes_repo = MemoryClassRepository(memory_db)
        roster = MemoryRosterProvider(memory_db)
        sessions_repo = MemorySessionRepository(memory_db)
        attendance_repo = MemoryAttendanceRepository(memory_db)
    elif backend == "mysql":
        if not db_config:
            raise ValidationError("DB_CONFIG is required for the mysql store")
        config = DBConfig(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
        )
        conn = DatabaseConnection.get_instance(config)
        classes_repo = MySQLClassRepository(conn)
        roster = MySQLRosterProvider(conn)
        sessions_repo = MySQLSessionRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        memory_db = None
    else:
        raise ValidationError(f"Unknown STORE_BACKEND: {store_backend}")

    session_manager = SessionManager(sessions_repo, classes_repo, window=window, late_threshold=late_threshold)
    check_in_service = CheckInService(sessions_repo, attendance_repo, classes_repo, roster)
    reconciler = AbsenceReconciler(sessions_repo, attendance_repo, roster, clock)
    lifecycle = SessionLifecycle(session_manager, reconciler, sessions_repo)
    report_service = AttendanceReportService(lifecycle, attendance_repo)

    return Container(
        clock=clock,
        classes_repo=classes_repo,
        roster=roster,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        session_manager=session_manager,
        check_in_service=check_in_service,
        reconciler=reconciler,
        lifecycle=lifecycle,
        report_service=report_service,
        memory_db=memory_db,
    )
