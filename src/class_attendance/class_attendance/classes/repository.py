from __future__ import annotations

from typing import FrozenSet, Optional, Protocol

from .model import ClassInfo


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[ClassInfo]:
        raise NotImplementedError


class RosterProvider(Protocol):
    def get_enrolled_students(self, class_id: int) -> FrozenSet[str]:
        """Snapshot of enrolled student ids, correct as of this call."""

        raise NotImplementedError
