# app/clock.py
# Role: Time provider injected into every operation that needs "now"
#       (default budget period, goal deadlines, allocation dates).

from datetime import date, datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return date.today()


class FixedClock:
    """A clock frozen at one instant. Used by tests and back-dated imports."""

    def __init__(self, at: datetime | date):
        if not isinstance(at, datetime):
            at = datetime(at.year, at.month, at.day)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def today(self) -> date:
        return self._at.date()
