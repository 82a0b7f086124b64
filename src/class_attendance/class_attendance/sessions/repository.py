from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CloseReason
from .model import NewSession, Session


class SessionRepository(Protocol):
    def create(self, new: NewSession) -> Session:
        """Atomically insert an ACTIVE session.

        Raises AlreadyActiveError when the class already has an ACTIVE session
        and TokenCollisionError when the token was used before.
        """

        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[Session]:
        raise NotImplementedError

    def get_active_for_class(self, class_id: int) -> Optional[Session]:
        raise NotImplementedError

    def close_if_active(self, *, session_id: int, closed_at: datetime, reason: CloseReason) -> bool:
        """Conditional ACTIVE -> CLOSED update. Returns False when nothing changed."""

        raise NotImplementedError

    def list_for_class(self, class_id: int) -> Sequence[Session]:
        """Newest first."""

        raise NotImplementedError

    def list_overdue(self, now: datetime) -> Sequence[Session]:
        """ACTIVE sessions whose deadline is at or before *now*."""

        raise NotImplementedError
