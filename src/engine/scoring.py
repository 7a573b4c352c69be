"""Scoring of completed practice-test sessions by TOEIC part."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .errors import InvalidArgumentError


MIN_SECTION_ID = 1
MAX_SECTION_ID = 7
LISTENING_SECTIONS = frozenset({1, 2, 3, 4})
READING_SECTIONS = frozenset({5, 6, 7})

DEFAULT_WEAK_THRESHOLD = 0.6
DEFAULT_STRONG_THRESHOLD = 0.85


@dataclass(frozen=True, slots=True)
class ScoringThresholds:
    """Accuracy cut-offs used to classify sections as weak or strong."""

    weak_threshold: float = DEFAULT_WEAK_THRESHOLD
    strong_threshold: float = DEFAULT_STRONG_THRESHOLD

    def __post_init__(self) -> None:
        for name in ("weak_threshold", "strong_threshold"):
            value = getattr(self, name)
            if not 0.0 < value < 1.0:
                raise InvalidArgumentError(f"{name} must be between 0 and 1, got {value}.")
        if self.weak_threshold > self.strong_threshold:
            raise InvalidArgumentError("weak_threshold must not exceed strong_threshold.")


@dataclass(frozen=True, slots=True)
class SectionAnswer:
    section_id: int
    is_correct: bool


@dataclass(frozen=True, slots=True)
class SectionScore:
    correct: int = 0
    attempted: int = 0

    @property
    def accuracy(self) -> float:
        if not self.attempted:
            return 0.0
        return self.correct / self.attempted

    def __add__(self, other: "SectionScore") -> "SectionScore":
        return SectionScore(self.correct + other.correct, self.attempted + other.attempted)


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    """Per-part results and exam-readiness signals for one test session."""

    per_section_score: Mapping[int, SectionScore] = field(default_factory=dict)
    weak_sections: Tuple[int, ...] = ()
    strong_sections: Tuple[int, ...] = ()
    neutral_sections: Tuple[int, ...] = ()

    @property
    def listening(self) -> SectionScore:
        return _sum_scores(
            score for section, score in self.per_section_score.items() if section in LISTENING_SECTIONS
        )

    @property
    def reading(self) -> SectionScore:
        return _sum_scores(
            score for section, score in self.per_section_score.items() if section in READING_SECTIONS
        )

    @property
    def total(self) -> SectionScore:
        return _sum_scores(self.per_section_score.values())


def _sum_scores(scores: Iterable[SectionScore]) -> SectionScore:
    total = SectionScore()
    for score in scores:
        total = total + score
    return total


def _validate_answer(answer: SectionAnswer) -> None:
    section_id = answer.section_id
    if isinstance(section_id, bool) or not isinstance(section_id, int):
        raise InvalidArgumentError(f"section_id must be an integer, got {section_id!r}.")
    if not MIN_SECTION_ID <= section_id <= MAX_SECTION_ID:
        raise InvalidArgumentError(
            f"section_id must be between {MIN_SECTION_ID} and {MAX_SECTION_ID}, got {section_id}."
        )
    if not isinstance(answer.is_correct, bool):
        raise InvalidArgumentError(f"is_correct must be a bool, got {answer.is_correct!r}.")


def score(
    answers: Iterable[SectionAnswer],
    *,
    thresholds: Optional[ScoringThresholds] = None,
) -> SessionOutcome:
    """Group answers by section and rank the weak and strong sections."""
    if thresholds is None:
        thresholds = ScoringThresholds()

    counts: Dict[int, SectionScore] = {}
    for answer in answers:
        _validate_answer(answer)
        current = counts.get(answer.section_id, SectionScore())
        counts[answer.section_id] = current + SectionScore(int(answer.is_correct), 1)

    weak = []
    strong = []
    neutral = []
    for section_id in sorted(counts):
        accuracy = counts[section_id].accuracy
        if accuracy < thresholds.weak_threshold:
            weak.append(section_id)
        elif accuracy >= thresholds.strong_threshold:
            strong.append(section_id)
        else:
            neutral.append(section_id)

    weak.sort(key=lambda section_id: (counts[section_id].accuracy, section_id))
    strong.sort(key=lambda section_id: (-counts[section_id].accuracy, section_id))

    return SessionOutcome(
        per_section_score={section_id: counts[section_id] for section_id in sorted(counts)},
        weak_sections=tuple(weak),
        strong_sections=tuple(strong),
        neutral_sections=tuple(neutral),
    )
