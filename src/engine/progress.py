"""Learner-level rollups of answered questions, study time and daily streaks."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Optional, Union

from .clock import Clock, resolve_clock
from .errors import InvalidArgumentError, InvariantViolationError
from .scoring import SessionOutcome


@dataclass(frozen=True, slots=True)
class LearnerStats:
    """Aggregated activity counters for one learner."""

    total_answered: int = 0
    total_correct: int = 0
    streak_days: int = 0
    last_activity_date: Optional[date] = None
    total_study_seconds: int = 0

    @property
    def accuracy(self) -> float:
        if not self.total_answered:
            return 0.0
        return self.total_correct / self.total_answered

    @property
    def total_study_minutes(self) -> int:
        return self.total_study_seconds // 60


@dataclass(frozen=True, slots=True)
class AttemptEvent:
    """A learner answered a single question or card."""

    is_correct: bool
    time_spent_seconds: int = 0


@dataclass(frozen=True, slots=True)
class SessionCompletedEvent:
    """A learner submitted a practice-test session."""

    outcome: SessionOutcome
    time_spent_seconds: int = 0


ProgressEvent = Union[AttemptEvent, SessionCompletedEvent]


def _validate_stats(stats: LearnerStats, today: date) -> None:
    for name in ("total_answered", "total_correct", "streak_days", "total_study_seconds"):
        value = getattr(stats, name)
        if value < 0:
            raise InvalidArgumentError(f"{name} must not be negative, got {value}.")
    if stats.total_correct > stats.total_answered:
        raise InvariantViolationError(
            f"total_correct ({stats.total_correct}) exceeds total_answered ({stats.total_answered})."
        )
    if stats.last_activity_date is not None and stats.last_activity_date > today:
        raise InvariantViolationError(
            f"last_activity_date {stats.last_activity_date} is after today ({today})."
        )


def _event_counts(event: ProgressEvent) -> tuple[int, int]:
    if isinstance(event, AttemptEvent):
        if not isinstance(event.is_correct, bool):
            raise InvalidArgumentError(f"is_correct must be a bool, got {event.is_correct!r}.")
        return 1, int(event.is_correct)
    if isinstance(event, SessionCompletedEvent):
        total = event.outcome.total
        return total.attempted, total.correct
    raise InvalidArgumentError(f"Unsupported progress event: {type(event).__name__}.")


def next_streak(streak_days: int, last_activity_date: Optional[date], today: date) -> int:
    """Return the streak after activity on ``today``."""
    if last_activity_date is None:
        return 1
    if last_activity_date == today:
        return max(1, streak_days)
    if last_activity_date == today - timedelta(days=1):
        return streak_days + 1
    return 1


def apply(
    stats: Optional[LearnerStats],
    event: ProgressEvent,
    *,
    clock: Optional[Clock] = None,
) -> LearnerStats:
    """Fold one attempt or completed session into the learner's stats.

    Counters grow on every call, including replays of the same event. The
    streak moves at most once per calendar day.
    """
    today = resolve_clock(clock).today()
    if stats is None:
        stats = LearnerStats()
    _validate_stats(stats, today)

    answered, correct = _event_counts(event)
    if event.time_spent_seconds < 0:
        raise InvalidArgumentError("time_spent_seconds must not be negative.")

    return replace(
        stats,
        total_answered=stats.total_answered + answered,
        total_correct=stats.total_correct + correct,
        streak_days=next_streak(stats.streak_days, stats.last_activity_date, today),
        last_activity_date=today,
        total_study_seconds=stats.total_study_seconds + event.time_spent_seconds,
    )
