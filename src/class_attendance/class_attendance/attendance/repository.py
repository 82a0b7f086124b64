from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Protocol, Sequence

from .model import AttendanceRecord


class InsertOutcome(str, Enum):
    CREATED = "CREATED"
    DUPLICATE = "DUPLICATE"
    SESSION_NOT_LIVE = "SESSION_NOT_LIVE"


class AttendanceRepository(Protocol):
    def insert_check_in(self, record: AttendanceRecord, *, now: datetime) -> InsertOutcome:
        """Create-if-absent guarded by session liveness, in one atomic statement.

        The record is written only if no record exists for the pair and the
        session is still ACTIVE with expires_at > now at write time.
        """

        raise NotImplementedError

    def insert_if_absent(self, record: AttendanceRecord) -> bool:
        """Plain create-if-absent. Returns False on a (session, student) conflict."""

        raise NotImplementedError

    def get(self, *, session_id: int, student_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def recorded_student_ids(self, session_id: int) -> FrozenSet[str]:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(self, student_id: str, *, class_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        """Newest first, optionally restricted to one class."""

        raise NotImplementedError

    def list_for_class(self, class_id: int) -> Sequence[AttendanceRecord]:
        """Every record across all sessions of a class, newest session first."""

        raise NotImplementedError
