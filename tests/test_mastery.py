from __future__ import annotations

import itertools
from datetime import date, timedelta

import pytest

from src.engine.clock import FixedClock
from src.engine.errors import InvalidArgumentError, InvariantViolationError
from src.engine.mastery import (
    DEFAULT_DUE_DAYS,
    MasteryRecord,
    is_due,
    record,
    validate_due_days_table,
)


TODAY = date(2026, 3, 16)


def test_correct_answer_raises_level_and_schedules(clock: FixedClock) -> None:
    rec = record(MasteryRecord(mastery_level=2, review_count=4), True, clock=clock)

    assert rec.mastery_level == 3
    assert rec.review_count == 5
    assert rec.next_review_date == TODAY + timedelta(days=7)
    assert rec.last_correct is True


def test_miss_costs_two_levels(clock: FixedClock) -> None:
    rec = record(MasteryRecord(mastery_level=4), False, clock=clock)

    assert rec.mastery_level == 2
    assert rec.next_review_date == TODAY + timedelta(days=4)
    assert rec.last_correct is False


def test_level_zero_is_due_tomorrow(clock: FixedClock) -> None:
    rec = record(MasteryRecord(mastery_level=1), False, clock=clock)

    assert rec.mastery_level == 0
    assert rec.next_review_date == TODAY + timedelta(days=1)


def test_top_level_is_due_in_a_month(clock: FixedClock) -> None:
    rec = record(MasteryRecord(mastery_level=5), True, clock=clock)

    assert rec.mastery_level == 5
    assert rec.next_review_date == TODAY + timedelta(days=30)


@pytest.mark.parametrize("start", range(0, 6))
@pytest.mark.parametrize(
    "pattern",
    [
        [True] * 12,
        [False] * 12,
        [True, False] * 6,
        [True, True, False] * 4,
        [False, True, True, True] * 3,
    ],
)
def test_level_stays_within_bounds(clock: FixedClock, start: int, pattern: list) -> None:
    rec = MasteryRecord(mastery_level=start)
    for is_correct in pattern:
        rec = record(rec, is_correct, clock=clock)
        assert 0 <= rec.mastery_level <= 5

    assert rec.review_count == len(pattern)


def test_custom_due_days_table(clock: FixedClock) -> None:
    table = {0: 1, 1: 1, 2: 3, 3: 5, 4: 10, 5: 60}

    rec = record(MasteryRecord(mastery_level=4), True, clock=clock, due_days=table)

    assert rec.next_review_date == TODAY + timedelta(days=60)


@pytest.mark.parametrize(
    "table",
    [
        {0: 1, 1: 2, 2: 4, 3: 7, 4: 14},
        {0: 1, 1: 2, 2: 4, 3: 7, 4: 14, 5: 30, 6: 60},
        {0: 0, 1: 2, 2: 4, 3: 7, 4: 14, 5: 30},
        {0: 1, 1: 2.5, 2: 4, 3: 7, 4: 14, 5: 30},
    ],
)
def test_invalid_due_days_table_is_rejected(table: dict) -> None:
    with pytest.raises(InvalidArgumentError):
        validate_due_days_table(table)


def test_default_table_is_valid() -> None:
    assert validate_due_days_table(DEFAULT_DUE_DAYS) == {0: 1, 1: 2, 2: 4, 3: 7, 4: 14, 5: 30}


@pytest.mark.parametrize("level", [-1, 6, 42])
def test_stored_level_out_of_range_is_refused(clock: FixedClock, level: int) -> None:
    with pytest.raises(InvariantViolationError):
        record(MasteryRecord(mastery_level=level), True, clock=clock)


def test_non_boolean_outcome_is_rejected(clock: FixedClock) -> None:
    with pytest.raises(InvalidArgumentError):
        record(MasteryRecord(), 1, clock=clock)  # type: ignore[arg-type]


def test_negative_review_count_is_rejected(clock: FixedClock) -> None:
    with pytest.raises(InvalidArgumentError):
        record(MasteryRecord(review_count=-2), True, clock=clock)


def test_unscheduled_record_is_due() -> None:
    assert is_due(MasteryRecord(), TODAY)
    assert is_due(MasteryRecord(next_review_date=TODAY), TODAY)
    assert not is_due(MasteryRecord(next_review_date=TODAY + timedelta(days=2)), TODAY)


def test_every_outcome_sequence_of_length_six_stays_in_range(clock: FixedClock) -> None:
    for pattern in itertools.product([True, False], repeat=6):
        rec = MasteryRecord()
        for is_correct in pattern:
            rec = record(rec, is_correct, clock=clock)
        assert 0 <= rec.mastery_level <= 5
