from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.engine.progress import LearnerStats
from src.engine.scoring import SectionScore, SessionOutcome

from . import Learner, PracticeSession


def to_stats(learner: Learner) -> LearnerStats:
    return LearnerStats(
        total_answered=learner.total_answered,
        total_correct=learner.total_correct,
        streak_days=learner.streak_days,
        last_activity_date=learner.last_activity_date,
        total_study_seconds=learner.total_study_seconds,
    )


async def get_learner(
    session: AsyncSession,
    learner_id: str,
    *,
    for_update: bool = False,
) -> Optional[Learner]:
    return await session.get(Learner, learner_id, with_for_update=for_update)


async def ensure_learner(
    session: AsyncSession,
    learner_id: str,
    now: Optional[datetime] = None,
) -> Learner:
    """Return the learner row, creating it with zeroed counters on first activity."""
    learner = await get_learner(session, learner_id, for_update=True)
    if learner is not None:
        return learner

    if now is None:
        now = datetime.now(timezone.utc)
    learner = Learner(
        learner_id=learner_id,
        total_answered=0,
        total_correct=0,
        streak_days=0,
        total_study_seconds=0,
        last_activity_date=None,
        created_at=now,
        updated_at=now,
    )
    session.add(learner)
    await session.flush()
    return learner


async def save_learner_stats(
    session: AsyncSession,
    learner: Learner,
    stats: LearnerStats,
    now: Optional[datetime] = None,
) -> None:
    """Copy a stats snapshot onto the learner row."""
    if now is None:
        now = datetime.now(timezone.utc)
    learner.total_answered = stats.total_answered
    learner.total_correct = stats.total_correct
    learner.streak_days = stats.streak_days
    learner.last_activity_date = stats.last_activity_date
    learner.total_study_seconds = stats.total_study_seconds
    learner.updated_at = now
    await session.flush()


async def get_learner_stats(session: AsyncSession, learner_id: str) -> Optional[LearnerStats]:
    """Return consolidated statistics for a learner, if present."""
    learner = await get_learner(session, learner_id)
    if learner is None:
        return None
    return to_stats(learner)


def to_outcome(practice: PracticeSession) -> SessionOutcome:
    """Rebuild the scored outcome of a stored practice session."""
    per_section = {
        int(section_id): SectionScore(correct=score["correct"], attempted=score["attempted"])
        for section_id, score in practice.section_scores.items()
    }
    weak = tuple(practice.weak_parts)
    strong = tuple(practice.strong_parts)
    classified = set(weak) | set(strong)
    return SessionOutcome(
        per_section_score={section_id: per_section[section_id] for section_id in sorted(per_section)},
        weak_sections=weak,
        strong_sections=strong,
        neutral_sections=tuple(
            section_id for section_id in sorted(per_section) if section_id not in classified
        ),
    )


async def get_practice_session(session: AsyncSession, session_id: str) -> Optional[PracticeSession]:
    return await session.get(PracticeSession, session_id)


async def record_practice_session(
    session: AsyncSession,
    learner_id: str,
    session_id: str,
    outcome: SessionOutcome,
    time_spent_seconds: int,
    completed_at: datetime,
) -> PracticeSession:
    """Store the scored outcome of a completed practice test."""
    practice = PracticeSession(
        session_id=session_id,
        learner_id=learner_id,
        status="completed",
        completed_at=completed_at,
        time_spent_seconds=time_spent_seconds,
        section_scores={
            str(section_id): {"correct": section.correct, "attempted": section.attempted}
            for section_id, section in outcome.per_section_score.items()
        },
        weak_parts=list(outcome.weak_sections),
        strong_parts=list(outcome.strong_sections),
        score_listening=outcome.listening.correct,
        score_reading=outcome.reading.correct,
        total_score=outcome.total.correct,
    )
    session.add(practice)
    await session.flush()
    return practice
