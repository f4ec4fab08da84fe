# backend/slotbook/services/clock.py
"""
Injectable "now".

Lead-time, past-date and cancel-window checks take a Clock instead of
calling datetime.now() so they can be tested deterministically.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC."""
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant; advance() moves it forward."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            raise ValueError("FixedClock needs a timezone-aware datetime")
        self._now = instant.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> None:
        self._now += timedelta(**kwargs)


system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency, overridden in tests."""
    return system_clock
