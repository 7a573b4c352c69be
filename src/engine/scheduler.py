"""Spaced-repetition scheduling for vocabulary review cards."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Union

from .clock import Clock, resolve_clock
from .errors import InvalidArgumentError, InvariantViolationError


DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
DEFAULT_INTERVAL_DAYS = 1
MASTERED_MIN_INTERVAL_DAYS = 21
MASTERED_MIN_REVIEWS = 5

AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15
HARD_INTERVAL_MULTIPLIER = 1.2
EASY_INTERVAL_MULTIPLIER = 1.3


class CardStatus(str, Enum):
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"


class ReviewOutcome(str, Enum):
    """Learner feedback after reviewing a card."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: Union["ReviewOutcome", str]) -> "ReviewOutcome":
        """Accept an enum member or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidArgumentError(f"Unknown review outcome: {value!r}.")


@dataclass(frozen=True, slots=True)
class ReviewCard:
    """Scheduling state for one learner and one vocabulary item."""

    next_review_date: date
    status: CardStatus = CardStatus.LEARNING
    interval_days: int = DEFAULT_INTERVAL_DAYS
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_count: int = 0
    last_result: Optional[ReviewOutcome] = None
    total_review_seconds: int = 0

    @property
    def is_new(self) -> bool:
        return self.review_count == 0 and self.last_result is None


def new_card(today: date) -> ReviewCard:
    """Return a never-reviewed card that is due immediately."""
    return ReviewCard(next_review_date=today)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _validate_card(card: ReviewCard) -> None:
    if card.interval_days < 1:
        raise InvalidArgumentError(f"interval_days must be positive, got {card.interval_days}.")
    if card.review_count < 0:
        raise InvalidArgumentError(f"review_count must not be negative, got {card.review_count}.")
    if card.total_review_seconds < 0:
        raise InvalidArgumentError("total_review_seconds must not be negative.")
    ease_factor = card.ease_factor
    if isinstance(ease_factor, bool) or not isinstance(ease_factor, (int, float)):
        raise InvalidArgumentError(f"ease_factor must be a number, got {ease_factor!r}.")
    if not math.isfinite(ease_factor):
        raise InvalidArgumentError(f"ease_factor must be finite, got {ease_factor}.")
    if ease_factor < MIN_EASE_FACTOR:
        raise InvariantViolationError(
            f"Stored ease factor {card.ease_factor} is below the {MIN_EASE_FACTOR} floor."
        )


def _promoted_status(card: ReviewCard, interval: int, review_count: int) -> CardStatus:
    if card.status is CardStatus.MASTERED:
        return CardStatus.MASTERED
    if interval >= MASTERED_MIN_INTERVAL_DAYS and review_count >= MASTERED_MIN_REVIEWS:
        return CardStatus.MASTERED
    return CardStatus.REVIEWING


def grade(
    card: ReviewCard,
    outcome: Union[ReviewOutcome, str],
    *,
    clock: Optional[Clock] = None,
    time_spent_seconds: int = 0,
) -> ReviewCard:
    """Return the card rescheduled after the learner graded it.

    The card passed in is left untouched; a new snapshot is returned.
    """
    result = ReviewOutcome.parse(outcome)
    _validate_card(card)
    if time_spent_seconds < 0:
        raise InvalidArgumentError("time_spent_seconds must not be negative.")

    today = resolve_clock(clock).today()
    base_interval = DEFAULT_INTERVAL_DAYS if card.is_new else card.interval_days
    ease_factor = card.ease_factor
    review_count = card.review_count + 1

    if result is ReviewOutcome.AGAIN:
        interval = 1
        ease_factor = max(MIN_EASE_FACTOR, ease_factor - AGAIN_EASE_PENALTY)
        status = CardStatus.LEARNING
    elif result is ReviewOutcome.HARD:
        interval = max(1, _round_half_up(base_interval * HARD_INTERVAL_MULTIPLIER))
        ease_factor = max(MIN_EASE_FACTOR, ease_factor - HARD_EASE_PENALTY)
        status = CardStatus.REVIEWING if card.status is CardStatus.LEARNING else card.status
    elif result is ReviewOutcome.GOOD:
        # at least one extra day so repeated GOOD keeps spacing reviews out
        interval = max(base_interval + 1, _round_half_up(base_interval * ease_factor))
        status = _promoted_status(card, interval, review_count)
    else:
        interval = max(
            base_interval + 1,
            _round_half_up(base_interval * ease_factor * EASY_INTERVAL_MULTIPLIER),
        )
        ease_factor = ease_factor + EASY_EASE_BONUS
        status = _promoted_status(card, interval, review_count)

    return replace(
        card,
        status=status,
        interval_days=interval,
        ease_factor=ease_factor,
        review_count=review_count,
        next_review_date=today + timedelta(days=interval),
        last_result=result,
        total_review_seconds=card.total_review_seconds + time_spent_seconds,
    )


def is_due(card: ReviewCard, today: date) -> bool:
    return card.next_review_date <= today


def due_cards(cards: Iterable[ReviewCard], today: date) -> List[ReviewCard]:
    """Return the cards due on or before ``today``, earliest due date first."""
    return sorted(
        (card for card in cards if is_due(card, today)),
        key=lambda card: card.next_review_date,
    )
