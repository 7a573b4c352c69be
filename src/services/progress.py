"""Transactional wrapper that feeds stored snapshots through the engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.db.learners import (
    ensure_learner,
    get_learner_stats,
    get_practice_session,
    record_practice_session,
    save_learner_stats,
    to_outcome,
    to_stats,
)
from src.db.questions import (
    ensure_question_progress,
    get_due_questions,
    log_question_attempt,
    to_record,
)
from src.db.vocabulary import (
    ensure_vocabulary_progress,
    get_due_vocabulary,
    record_vocabulary_review,
    to_card,
)
from src.engine import mastery, progress, scheduler, scoring
from src.engine.clock import Clock, resolve_clock
from src.engine.errors import InvalidArgumentError, InvariantViolationError
from src.engine.mastery import MasteryRecord
from src.engine.progress import AttemptEvent, LearnerStats, SessionCompletedEvent
from src.engine.scheduler import ReviewCard, ReviewOutcome
from src.engine.scoring import ScoringThresholds, SectionAnswer, SessionOutcome


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class DueVocabulary:
    vocab_id: str
    card: ReviewCard


@dataclass(slots=True)
class DueQuestion:
    question_id: str
    record: MasteryRecord


@dataclass(slots=True)
class SessionResult:
    """Scored session together with the learner's refreshed stats."""

    session_id: str
    outcome: SessionOutcome
    stats: LearnerStats


class ProgressService:
    """Runs each read, engine call and write for one learner inside a single transaction."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Optional[Clock] = None,
        thresholds: Optional[ScoringThresholds] = None,
        mastery_due_days: Optional[Mapping[int, int]] = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = resolve_clock(clock)
        self._thresholds = thresholds or ScoringThresholds()
        self._mastery_due_days = (
            None if mastery_due_days is None else mastery.validate_due_days_table(mastery_due_days)
        )

    async def _apply_progress(
        self,
        session: AsyncSession,
        learner_id: str,
        event: progress.ProgressEvent,
    ) -> LearnerStats:
        now = self._clock.now()
        learner = await ensure_learner(session, learner_id, now=now)
        try:
            stats = progress.apply(to_stats(learner), event, clock=self._clock)
        except InvariantViolationError:
            LOGGER.error("Stored statistics for learner %s are inconsistent.", learner_id)
            raise
        await save_learner_stats(session, learner, stats, now=now)
        return stats

    async def grade_vocabulary(
        self,
        learner_id: str,
        vocab_id: str,
        outcome: Union[ReviewOutcome, str],
        time_spent_seconds: int = 0,
    ) -> ReviewCard:
        """Grade a vocabulary card and count the review towards the learner's stats."""
        today = self._clock.today()
        async with self._session_factory() as session:
            async with session.begin():
                await ensure_learner(session, learner_id, now=self._clock.now())
                row, created = await ensure_vocabulary_progress(session, learner_id, vocab_id, today)
                if created:
                    LOGGER.debug("Created vocabulary card %s for learner %s.", vocab_id, learner_id)
                try:
                    card = scheduler.grade(
                        to_card(row),
                        outcome,
                        clock=self._clock,
                        time_spent_seconds=time_spent_seconds,
                    )
                except InvariantViolationError:
                    LOGGER.error(
                        "Stored card %s for learner %s is inconsistent.", vocab_id, learner_id
                    )
                    raise
                await record_vocabulary_review(
                    session,
                    row,
                    card,
                    time_spent_seconds=time_spent_seconds,
                    now=self._clock.now(),
                )
                await self._apply_progress(
                    session,
                    learner_id,
                    AttemptEvent(
                        is_correct=card.last_result is not ReviewOutcome.AGAIN,
                        time_spent_seconds=time_spent_seconds,
                    ),
                )

        LOGGER.info(
            "Learner %s graded %s as %s; next review on %s.",
            learner_id,
            vocab_id,
            card.last_result.value,
            card.next_review_date.isoformat(),
        )
        return card

    async def record_question_attempt(
        self,
        learner_id: str,
        question_id: str,
        is_correct: bool,
        time_spent_seconds: int = 0,
        session_id: Optional[str] = None,
    ) -> MasteryRecord:
        """Update the question's mastery band, log the attempt and bump the learner's counters.

        ``session_id`` ties the attempt to the practice test it was answered in, if any.
        """
        if time_spent_seconds < 0:
            raise InvalidArgumentError("time_spent_seconds must not be negative.")
        async with self._session_factory() as session:
            async with session.begin():
                await ensure_learner(session, learner_id, now=self._clock.now())
                row, _ = await ensure_question_progress(session, learner_id, question_id)
                try:
                    rec = mastery.record(
                        to_record(row),
                        is_correct,
                        clock=self._clock,
                        due_days=self._mastery_due_days,
                    )
                except InvariantViolationError:
                    LOGGER.error(
                        "Stored mastery for question %s and learner %s is inconsistent.",
                        question_id,
                        learner_id,
                    )
                    raise
                await log_question_attempt(
                    session,
                    row,
                    rec,
                    time_spent_seconds=time_spent_seconds,
                    session_id=session_id,
                    now=self._clock.now(),
                )
                await self._apply_progress(
                    session,
                    learner_id,
                    AttemptEvent(is_correct=is_correct, time_spent_seconds=time_spent_seconds),
                )
        return rec

    async def complete_test_session(
        self,
        learner_id: str,
        session_id: str,
        answers: Iterable[SectionAnswer],
        time_spent_seconds: int = 0,
        thresholds: Optional[ScoringThresholds] = None,
    ) -> SessionResult:
        """Score a submitted practice test, store it and roll it into the learner's stats.

        Submitting an already completed session again returns the stored result
        without counting the answers a second time.
        """
        outcome = scoring.score(answers, thresholds=thresholds or self._thresholds)
        async with self._session_factory() as session:
            async with session.begin():
                learner = await ensure_learner(session, learner_id, now=self._clock.now())
                existing = await get_practice_session(session, session_id)
                if existing is not None:
                    if existing.learner_id != learner_id:
                        raise InvalidArgumentError(
                            f"Session {session_id} belongs to another learner."
                        )
                    LOGGER.info(
                        "Session %s of learner %s was already completed; returning stored result.",
                        session_id,
                        learner_id,
                    )
                    return SessionResult(
                        session_id=session_id,
                        outcome=to_outcome(existing),
                        stats=to_stats(learner),
                    )
                await record_practice_session(
                    session,
                    learner_id,
                    session_id,
                    outcome,
                    time_spent_seconds=time_spent_seconds,
                    completed_at=self._clock.now(),
                )
                stats = await self._apply_progress(
                    session,
                    learner_id,
                    SessionCompletedEvent(outcome=outcome, time_spent_seconds=time_spent_seconds),
                )

        LOGGER.info(
            "Learner %s completed session %s: weak parts %s, strong parts %s.",
            learner_id,
            session_id,
            list(outcome.weak_sections),
            list(outcome.strong_sections),
        )
        return SessionResult(session_id=session_id, outcome=outcome, stats=stats)

    async def get_due_vocabulary(self, learner_id: str, limit: Optional[int] = None) -> List[DueVocabulary]:
        async with self._session_factory() as session:
            rows = await get_due_vocabulary(session, learner_id, self._clock.today(), limit=limit)
            return [DueVocabulary(vocab_id=row.vocab_id, card=to_card(row)) for row in rows]

    async def get_due_questions(self, learner_id: str, limit: Optional[int] = None) -> List[DueQuestion]:
        async with self._session_factory() as session:
            rows = await get_due_questions(session, learner_id, self._clock.today(), limit=limit)
            return [DueQuestion(question_id=row.question_id, record=to_record(row)) for row in rows]

    async def get_learner_stats(self, learner_id: str) -> Optional[LearnerStats]:
        async with self._session_factory() as session:
            return await get_learner_stats(session, learner_id)
