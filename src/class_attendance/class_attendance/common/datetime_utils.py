from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Wall clock (local time, naive), matching how MySQL DATETIME is stored."""

    def now(self) -> datetime:
        return now_local()


@dataclass
class FixedClock:
    """Manually advanced clock for tests and scripted demos."""

    current: datetime

    def now(self) -> datetime:
        return self.current

    def advance(self, *, minutes: int = 0, seconds: int = 0) -> datetime:
        self.current = self.current + timedelta(minutes=minutes, seconds=seconds)
        return self.current


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def format_iso(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value else None
