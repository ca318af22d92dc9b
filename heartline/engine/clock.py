"""
heartline.engine.clock — Wall-clock abstraction
================================================

Cap and cooldown windows are computed from an injected clock so tests can
pin "today" without touching the system time.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, at: datetime) -> None:
        self._now = _as_utc(at)

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = _as_utc(at)

    def advance(self, **kwargs: float) -> None:
        self._now += timedelta(**kwargs)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def start_of_utc_day(now: datetime) -> datetime:
    """Midnight (UTC) of the calendar day containing *now*."""
    return _as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)


DEFAULT_CLOCK: Clock = SystemClock()
