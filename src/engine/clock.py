"""Injectable time sources used for date arithmetic."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Minimal interface required from a time source."""

    def now(self) -> datetime:
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Clock backed by the current UTC wall time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock that always reports the same instant until advanced."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    @classmethod
    def on(cls, day: date) -> "FixedClock":
        """Build a clock pinned to midday UTC of the given date."""
        return cls(datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.date()

    def advance(self, *, days: int = 0, hours: int = 0) -> None:
        self._instant += timedelta(days=days, hours=hours)


SYSTEM_CLOCK = SystemClock()


def resolve_clock(clock: Optional[Clock]) -> Clock:
    """Return the given clock or the shared system clock."""
    return SYSTEM_CLOCK if clock is None else clock
