from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles supplied by the external auth layer; only used to gate routes."""

    TEACHER = "teacher"
    STUDENT = "student"


class SessionState(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class CloseReason(str, Enum):
    """Which trigger closed a session (kept for audit only)."""

    EXPLICIT = "EXPLICIT"
    EXPIRED = "EXPIRED"


class AttendanceStatus(str, Enum):
    """Attendance outcome stored per (session, student)."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"
