from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional


@dataclass(frozen=True)
class ClassInfo:
    """Read-only view of a scheduled class owned by the course management side."""

    class_id: int
    name: str
    start_time: time
    teacher_id: Optional[str] = None
    location: Optional[str] = None
