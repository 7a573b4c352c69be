from __future__ import annotations

from datetime import date, datetime, timezone

from src.engine.clock import SYSTEM_CLOCK, FixedClock, SystemClock, resolve_clock


def test_fixed_clock_is_pinned_and_advances() -> None:
    clock = FixedClock(datetime(2026, 1, 31, 23, 30))

    assert clock.now().tzinfo is timezone.utc
    assert clock.today() == date(2026, 1, 31)

    clock.advance(hours=1)
    assert clock.today() == date(2026, 2, 1)
    assert clock.now() == clock.now()


def test_system_clock_reports_aware_utc_time() -> None:
    now = SystemClock().now()

    assert now.tzinfo is not None
    assert now.utcoffset().total_seconds() == 0


def test_resolve_clock_defaults_to_system_clock() -> None:
    fixed = FixedClock.on(date(2026, 5, 1))

    assert resolve_clock(None) is SYSTEM_CLOCK
    assert resolve_clock(fixed) is fixed
