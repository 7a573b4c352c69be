"""Pure scheduling, mastery, scoring and progress rules for learner activity."""

from .clock import Clock, FixedClock, SystemClock
from .errors import EngineError, InvalidArgumentError, InvariantViolationError
from .mastery import MasteryRecord
from .progress import AttemptEvent, LearnerStats, SessionCompletedEvent
from .scheduler import CardStatus, ReviewCard, ReviewOutcome
from .scoring import ScoringThresholds, SectionAnswer, SectionScore, SessionOutcome

__all__ = [
    "AttemptEvent",
    "CardStatus",
    "Clock",
    "EngineError",
    "FixedClock",
    "InvalidArgumentError",
    "InvariantViolationError",
    "LearnerStats",
    "MasteryRecord",
    "ReviewCard",
    "ReviewOutcome",
    "ScoringThresholds",
    "SectionAnswer",
    "SectionScore",
    "SessionCompletedEvent",
    "SessionOutcome",
    "SystemClock",
]
