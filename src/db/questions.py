"""Helpers for persisting per-question mastery records."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.engine.mastery import MasteryRecord

from . import QuestionAttempt, QuestionProgress


def to_record(row: QuestionProgress) -> MasteryRecord:
    return MasteryRecord(
        mastery_level=row.mastery_level,
        review_count=row.review_count,
        next_review_date=row.next_review_date,
        last_correct=row.last_correct,
    )


def apply_record(row: QuestionProgress, rec: MasteryRecord) -> None:
    row.mastery_level = rec.mastery_level
    row.review_count = rec.review_count
    row.next_review_date = rec.next_review_date
    row.last_correct = rec.last_correct


async def log_question_attempt(
    session: AsyncSession,
    row: QuestionProgress,
    rec: MasteryRecord,
    time_spent_seconds: int = 0,
    session_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> QuestionAttempt:
    """Persist an updated mastery record together with its attempt history entry."""
    if now is None:
        now = datetime.now(timezone.utc)
    if rec.last_correct is None:
        raise ValueError("Only answered questions can be logged as attempts.")

    apply_record(row, rec)
    row.updated_at = now

    attempt = QuestionAttempt(
        question_progress_id=row.id,
        learner_id=row.learner_id,
        question_id=row.question_id,
        session_id=session_id,
        is_correct=rec.last_correct,
        time_spent_seconds=time_spent_seconds,
        mastery_level=rec.mastery_level,
        attempted_at=now,
    )
    session.add(attempt)
    await session.flush()
    return attempt


async def get_question_attempts(
    session: AsyncSession,
    learner_id: str,
    *,
    question_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Sequence[QuestionAttempt]:
    """Return a learner's attempts in the order they were made."""
    stmt = select(QuestionAttempt).where(QuestionAttempt.learner_id == learner_id)
    if question_id is not None:
        stmt = stmt.where(QuestionAttempt.question_id == question_id)
    if session_id is not None:
        stmt = stmt.where(QuestionAttempt.session_id == session_id)
    result = await session.execute(stmt.order_by(QuestionAttempt.id))
    return result.scalars().all()


async def ensure_question_progress(
    session: AsyncSession,
    learner_id: str,
    question_id: str,
) -> tuple[QuestionProgress, bool]:
    """Fetch the learner's mastery row for a question or create an empty one."""
    stmt = (
        select(QuestionProgress)
        .where(
            QuestionProgress.learner_id == learner_id,
            QuestionProgress.question_id == question_id,
        )
        .with_for_update()
    )
    result = await session.execute(stmt)
    row = result.scalars().first()
    if row is not None:
        return row, False

    row = QuestionProgress(learner_id=learner_id, question_id=question_id)
    apply_record(row, MasteryRecord())
    session.add(row)
    await session.flush()
    return row, True


async def get_due_questions(
    session: AsyncSession,
    learner_id: str,
    today: date,
    limit: Optional[int] = None,
) -> Sequence[QuestionProgress]:
    """Return question rows due on or before ``today``; unscheduled rows come first."""
    stmt = (
        select(QuestionProgress)
        .where(
            QuestionProgress.learner_id == learner_id,
            or_(
                QuestionProgress.next_review_date.is_(None),
                QuestionProgress.next_review_date <= today,
            ),
        )
        .order_by(
            QuestionProgress.next_review_date.is_not(None),
            QuestionProgress.next_review_date,
            QuestionProgress.id,
        )
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()
