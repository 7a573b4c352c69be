from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import select

from src.db import Learner, PracticeSession, QuestionAttempt, VocabularyProgress, VocabularyReview
from src.engine.clock import FixedClock
from src.engine.errors import InvalidArgumentError, InvariantViolationError
from src.engine.scheduler import CardStatus, ReviewOutcome
from src.engine.scoring import ScoringThresholds, SectionAnswer
from src.services import ProgressService


TODAY = date(2026, 3, 16)


@pytest.mark.asyncio
async def test_grade_vocabulary_creates_and_reschedules_card(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)

    first = await service.grade_vocabulary("learner-1", "vocab-1", ReviewOutcome.GOOD, time_spent_seconds=9)
    second = await service.grade_vocabulary("learner-1", "vocab-1", "good", time_spent_seconds=6)

    assert first.interval_days == 3
    assert second.interval_days == 8
    assert second.review_count == 2
    assert second.next_review_date == TODAY + timedelta(days=8)

    async with session_factory() as session:
        rows = (await session.execute(select(VocabularyProgress))).scalars().all()
        reviews = (await session.execute(select(VocabularyReview))).scalars().all()
        learner = await session.get(Learner, "learner-1")

    assert len(rows) == 1
    assert rows[0].status == CardStatus.REVIEWING.value
    assert rows[0].last_review_result == "good"
    assert rows[0].total_review_seconds == 15
    assert [review.result for review in reviews] == ["good", "good"]
    assert learner.total_answered == 2
    assert learner.total_correct == 2
    assert learner.streak_days == 1
    assert learner.total_study_seconds == 15


@pytest.mark.asyncio
async def test_again_counts_as_a_miss(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)

    card = await service.grade_vocabulary("learner-2", "vocab-9", "again")
    stats = await service.get_learner_stats("learner-2")

    assert card.status is CardStatus.LEARNING
    assert stats is not None
    assert stats.total_answered == 1
    assert stats.total_correct == 0


@pytest.mark.asyncio
async def test_invalid_outcome_leaves_no_trace(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)

    with pytest.raises(InvalidArgumentError):
        await service.grade_vocabulary("learner-3", "vocab-1", "perfect")

    assert await service.get_learner_stats("learner-3") is None


@pytest.mark.asyncio
async def test_due_vocabulary_follows_the_clock(session_factory) -> None:
    clock = FixedClock.on(TODAY)
    service = ProgressService(session_factory, clock=clock)

    await service.grade_vocabulary("learner-4", "early", "again")
    await service.grade_vocabulary("learner-4", "late", "easy")

    assert await service.get_due_vocabulary("learner-4") == []

    clock.advance(days=1)
    due = await service.get_due_vocabulary("learner-4")
    assert [item.vocab_id for item in due] == ["early"]

    clock.advance(days=10)
    due = await service.get_due_vocabulary("learner-4")
    assert [item.vocab_id for item in due] == ["early", "late"]


@pytest.mark.asyncio
async def test_record_question_attempt_tracks_mastery(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)

    for _ in range(3):
        rec = await service.record_question_attempt("learner-5", "q-1", True, time_spent_seconds=20)
    assert rec.mastery_level == 3
    assert rec.next_review_date == TODAY + timedelta(days=7)

    rec = await service.record_question_attempt("learner-5", "q-1", False)
    assert rec.mastery_level == 1
    assert rec.review_count == 4

    stats = await service.get_learner_stats("learner-5")
    assert stats.total_answered == 4
    assert stats.total_correct == 3
    assert stats.total_study_seconds == 60


@pytest.mark.asyncio
async def test_custom_due_days_are_used(session_factory, clock: FixedClock) -> None:
    service = ProgressService(
        session_factory,
        clock=clock,
        mastery_due_days={0: 1, 1: 3, 2: 5, 3: 10, 4: 20, 5: 45},
    )

    rec = await service.record_question_attempt("learner-6", "q-7", True)

    assert rec.next_review_date == TODAY + timedelta(days=3)
    due = await service.get_due_questions("learner-6")
    assert due == []

    clock.advance(days=3)
    due = await service.get_due_questions("learner-6")
    assert [item.question_id for item in due] == ["q-7"]


@pytest.mark.asyncio
async def test_complete_test_session_scores_and_stores(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)
    answers = (
        [SectionAnswer(1, True)] * 3
        + [SectionAnswer(1, False)] * 7
        + [SectionAnswer(5, True)] * 9
        + [SectionAnswer(5, False)] * 1
    )

    result = await service.complete_test_session("learner-7", "session-1", answers, time_spent_seconds=600)

    assert result.outcome.weak_sections == (1,)
    assert result.outcome.strong_sections == (5,)
    assert result.stats.total_answered == 20
    assert result.stats.total_correct == 12
    assert result.stats.total_study_minutes == 10

    async with session_factory() as session:
        stored = await session.get(PracticeSession, "session-1")

    assert stored is not None
    assert stored.weak_parts == [1]
    assert stored.strong_parts == [5]
    assert stored.score_listening == 3
    assert stored.score_reading == 9
    assert stored.section_scores["1"] == {"correct": 3, "attempted": 10}
    assert stored.total_score == 12


@pytest.mark.asyncio
async def test_session_thresholds_can_be_overridden(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)
    answers = [SectionAnswer(3, True)] * 7 + [SectionAnswer(3, False)] * 3

    default = await service.complete_test_session("learner-8", "s-1", answers)
    strict = await service.complete_test_session(
        "learner-8",
        "s-2",
        answers,
        thresholds=ScoringThresholds(weak_threshold=0.75, strong_threshold=0.9),
    )

    assert default.outcome.neutral_sections == (3,)
    assert strict.outcome.weak_sections == (3,)
    assert strict.stats.total_answered == 20


@pytest.mark.asyncio
async def test_corrupted_learner_stats_abort_the_transaction(session_factory, clock: FixedClock) -> None:
    async with session_factory() as session:
        async with session.begin():
            session.add(Learner(learner_id="learner-9", total_answered=1, total_correct=4))

    service = ProgressService(session_factory, clock=clock)

    with pytest.raises(InvariantViolationError):
        await service.record_question_attempt("learner-9", "q-1", True)

    assert await service.get_due_questions("learner-9") == []
    stats = await service.get_learner_stats("learner-9")
    assert stats.total_answered == 1


@pytest.mark.asyncio
async def test_question_attempts_are_logged(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)

    await service.record_question_attempt("learner-10", "q-1", True, time_spent_seconds=25, session_id="s-10")
    clock.advance(hours=1)
    await service.record_question_attempt("learner-10", "q-1", False, time_spent_seconds=40)

    async with session_factory() as session:
        attempts = (
            await session.execute(select(QuestionAttempt).order_by(QuestionAttempt.id))
        ).scalars().all()

    assert [attempt.is_correct for attempt in attempts] == [True, False]
    assert [attempt.session_id for attempt in attempts] == ["s-10", None]
    assert [attempt.time_spent_seconds for attempt in attempts] == [25, 40]
    assert [attempt.mastery_level for attempt in attempts] == [1, 0]
    assert attempts[1].attempted_at.replace(tzinfo=None) == clock.now().replace(tzinfo=None)


@pytest.mark.asyncio
async def test_resubmitted_session_is_not_counted_twice(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)
    answers = [SectionAnswer(2, True)] * 4 + [SectionAnswer(6, False)] * 6

    first = await service.complete_test_session("learner-11", "s-11", answers, time_spent_seconds=300)
    clock.advance(days=1)
    again = await service.complete_test_session("learner-11", "s-11", answers, time_spent_seconds=300)

    assert again.outcome == first.outcome
    assert again.stats == first.stats
    assert again.stats.total_answered == 10
    assert again.stats.total_study_seconds == 300

    async with session_factory() as session:
        stored = (
            await session.execute(select(PracticeSession).where(PracticeSession.learner_id == "learner-11"))
        ).scalars().all()
    assert len(stored) == 1


@pytest.mark.asyncio
async def test_session_id_of_another_learner_is_rejected(session_factory, clock: FixedClock) -> None:
    service = ProgressService(session_factory, clock=clock)
    answers = [SectionAnswer(7, True)] * 2

    await service.complete_test_session("learner-12", "s-12", answers)

    with pytest.raises(InvalidArgumentError):
        await service.complete_test_session("learner-13", "s-12", answers)

    assert await service.get_learner_stats("learner-13") is None
    stats = await service.get_learner_stats("learner-12")
    assert stats.total_answered == 2


@pytest.mark.asyncio
async def test_learner_timestamps_come_from_the_clock(session_factory) -> None:
    clock = FixedClock.on(date(2020, 1, 6))
    service = ProgressService(session_factory, clock=clock)

    await service.record_question_attempt("learner-14", "q-3", True)
    clock.advance(days=2)
    await service.grade_vocabulary("learner-14", "vocab-3", "good")

    async with session_factory() as session:
        learner = await session.get(Learner, "learner-14")

    assert learner.created_at.replace(tzinfo=None) == datetime(2020, 1, 6, 12)
    assert learner.updated_at.replace(tzinfo=None) == datetime(2020, 1, 8, 12)
