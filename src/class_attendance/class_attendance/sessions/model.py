from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..common.validators import require_non_empty, require_positive_id
from ..core.enums import CloseReason, SessionState
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Session:
    """One open attendance window for one class meeting."""

    session_id: int
    class_id: int
    token: str
    opened_at: datetime
    expires_at: datetime
    state: SessionState
    late_threshold: timedelta
    closed_at: Optional[datetime] = None
    close_reason: Optional[CloseReason] = None

    def is_live(self, now: datetime) -> bool:
        """Check-ins are accepted only while ACTIVE and before the deadline."""
        return self.state == SessionState.ACTIVE and now < self.expires_at

    def is_overdue(self, now: datetime) -> bool:
        """Deadline passed but the close transition has not been persisted yet."""
        return self.state == SessionState.ACTIVE and now >= self.expires_at


@dataclass(frozen=True)
class NewSession:
    """A validated session waiting for the store to assign its id."""

    class_id: int
    token: str
    opened_at: datetime
    expires_at: datetime
    late_threshold: timedelta


def new_session(
    *,
    class_id: int,
    token: str,
    opened_at: datetime,
    window: timedelta,
    late_threshold: timedelta,
) -> NewSession:
    if window <= timedelta(0):
        raise ValidationError("Session window must be positive")
    if late_threshold < timedelta(0):
        raise ValidationError("Late threshold must not be negative")

    # the store keeps whole seconds; the returned deadline must match the stored one
    opened_at = opened_at.replace(microsecond=0)

    return NewSession(
        class_id=require_positive_id(class_id, "class_id"),
        token=require_non_empty(token, "token"),
        opened_at=opened_at,
        expires_at=opened_at + window,
        late_threshold=late_threshold,
    )
