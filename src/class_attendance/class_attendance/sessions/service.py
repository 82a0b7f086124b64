from __future__ import annotations

import logging
from datetime import datetime, timedelta

from ..classes.repository import ClassRepository
from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_LATE_THRESHOLD_MINUTES, DEFAULT_SESSION_WINDOW_MINUTES
from ..core.enums import CloseReason
from ..core.exceptions import ClassNotFoundError, SessionNotFoundError
from ..tokens.generator import TokenGenerator, generate_token
from .model import Session, new_session
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns session creation and the ACTIVE -> CLOSED transition."""

    def __init__(
        self,
        sessions: SessionRepository,
        classes: ClassRepository,
        *,
        token_generator: TokenGenerator = generate_token,
        window: timedelta = timedelta(minutes=DEFAULT_SESSION_WINDOW_MINUTES),
        late_threshold: timedelta = timedelta(minutes=DEFAULT_LATE_THRESHOLD_MINUTES),
    ):
        self._sessions = sessions
        self._classes = classes
        self._token_generator = token_generator
        self._window = window
        self._late_threshold = late_threshold

    def open_session(self, class_id: int, now: datetime) -> Session:
        class_id = require_positive_id(class_id, "class_id")
        if not self._classes.get_by_id(class_id):
            raise ClassNotFoundError(f"Class {class_id} not found")

        new = new_session(
            class_id=class_id,
            token=self._token_generator(),
            opened_at=now,
            window=self._window,
            late_threshold=self._late_threshold,
        )
        # One attempt: AlreadyActiveError / TokenCollisionError come straight from the store.
        session = self._sessions.create(new)

        logger.info(
            "opened session=%s class=%s expires_at=%s",
            session.session_id,
            class_id,
            session.expires_at.isoformat(timespec="seconds"),
        )
        return session

    def close_session(self, session_id: int, now: datetime, *, reason: CloseReason = CloseReason.EXPLICIT) -> Session:
        """Idempotent: closing an already CLOSED session is a no-op success."""
        changed = self._sessions.close_if_active(session_id=int(session_id), closed_at=now, reason=reason)

        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise SessionNotFoundError(f"Session {session_id} not found")

        if changed:
            logger.info("closed session=%s reason=%s", session.session_id, reason.value)
        return session

    @staticmethod
    def is_live(session: Session, now: datetime) -> bool:
        return session.is_live(now)
