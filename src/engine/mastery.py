"""Coarse mastery banding for exam-style questions.

Each correct answer moves a question one level up, each miss two levels down,
and the level picks how many days pass before the question comes back. This is
deliberately separate from the ease-based scheduler in :mod:`src.engine.scheduler`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Mapping, Optional

from .clock import Clock, resolve_clock
from .errors import InvalidArgumentError, InvariantViolationError


MIN_MASTERY_LEVEL = 0
MAX_MASTERY_LEVEL = 5
CORRECT_STEP = 1
INCORRECT_STEP = 2

DEFAULT_DUE_DAYS: Mapping[int, int] = {0: 1, 1: 2, 2: 4, 3: 7, 4: 14, 5: 30}


@dataclass(frozen=True, slots=True)
class MasteryRecord:
    """Mastery state for one learner and one question."""

    mastery_level: int = MIN_MASTERY_LEVEL
    review_count: int = 0
    next_review_date: Optional[date] = None
    last_correct: Optional[bool] = None


def validate_due_days_table(table: Mapping[int, int]) -> Mapping[int, int]:
    """Check that ``table`` maps every level 0..5 to a positive number of days."""
    expected = set(range(MIN_MASTERY_LEVEL, MAX_MASTERY_LEVEL + 1))
    if set(table) != expected:
        raise InvalidArgumentError(
            f"Mastery due-days table must define levels {sorted(expected)}, got {sorted(table)}."
        )
    for level, days in table.items():
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise InvalidArgumentError(
                f"Mastery level {level} must map to a positive whole number of days, got {days!r}."
            )
    return dict(table)


def _validate_record(rec: MasteryRecord) -> None:
    if not MIN_MASTERY_LEVEL <= rec.mastery_level <= MAX_MASTERY_LEVEL:
        raise InvariantViolationError(
            f"Stored mastery level {rec.mastery_level} is outside "
            f"[{MIN_MASTERY_LEVEL}, {MAX_MASTERY_LEVEL}]."
        )
    if rec.review_count < 0:
        raise InvalidArgumentError(f"review_count must not be negative, got {rec.review_count}.")


def next_level(level: int, is_correct: bool) -> int:
    if is_correct:
        return min(MAX_MASTERY_LEVEL, level + CORRECT_STEP)
    return max(MIN_MASTERY_LEVEL, level - INCORRECT_STEP)


def record(
    rec: MasteryRecord,
    is_correct: bool,
    *,
    clock: Optional[Clock] = None,
    due_days: Optional[Mapping[int, int]] = None,
) -> MasteryRecord:
    """Return the record updated with the outcome of one attempt."""
    if not isinstance(is_correct, bool):
        raise InvalidArgumentError(f"is_correct must be a bool, got {is_correct!r}.")
    _validate_record(rec)
    table = DEFAULT_DUE_DAYS if due_days is None else validate_due_days_table(due_days)

    level = next_level(rec.mastery_level, is_correct)
    today = resolve_clock(clock).today()
    return replace(
        rec,
        mastery_level=level,
        review_count=rec.review_count + 1,
        next_review_date=today + timedelta(days=table[level]),
        last_correct=is_correct,
    )


def is_due(rec: MasteryRecord, today: date) -> bool:
    """Questions that were never scheduled count as due."""
    return rec.next_review_date is None or rec.next_review_date <= today
