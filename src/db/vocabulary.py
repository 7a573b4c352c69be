"""Helpers for persisting vocabulary review cards."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.engine.scheduler import CardStatus, ReviewCard, ReviewOutcome, new_card

from . import VocabularyProgress, VocabularyReview


def to_card(row: VocabularyProgress) -> ReviewCard:
    """Build an engine snapshot from a stored row."""
    return ReviewCard(
        next_review_date=row.next_review_date,
        status=CardStatus(row.status),
        interval_days=row.interval_days,
        ease_factor=row.ease_factor,
        review_count=row.review_count,
        last_result=ReviewOutcome(row.last_review_result) if row.last_review_result else None,
        total_review_seconds=row.total_review_seconds,
    )


def apply_card(row: VocabularyProgress, card: ReviewCard) -> None:
    """Copy an engine snapshot onto a stored row."""
    row.status = card.status.value
    row.next_review_date = card.next_review_date
    row.interval_days = card.interval_days
    row.ease_factor = card.ease_factor
    row.review_count = card.review_count
    row.last_review_result = card.last_result.value if card.last_result else None
    row.total_review_seconds = card.total_review_seconds


async def get_vocabulary_progress(
    session: AsyncSession,
    learner_id: str,
    vocab_id: str,
    *,
    for_update: bool = False,
) -> Optional[VocabularyProgress]:
    stmt = select(VocabularyProgress).where(
        VocabularyProgress.learner_id == learner_id,
        VocabularyProgress.vocab_id == vocab_id,
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalars().first()


async def ensure_vocabulary_progress(
    session: AsyncSession,
    learner_id: str,
    vocab_id: str,
    today: date,
) -> tuple[VocabularyProgress, bool]:
    """Return the learner's card for a vocabulary item, creating a due card when missing."""
    row = await get_vocabulary_progress(session, learner_id, vocab_id, for_update=True)
    if row is not None:
        return row, False

    row = VocabularyProgress(learner_id=learner_id, vocab_id=vocab_id)
    apply_card(row, new_card(today))
    session.add(row)
    await session.flush()
    return row, True


async def record_vocabulary_review(
    session: AsyncSession,
    row: VocabularyProgress,
    card: ReviewCard,
    time_spent_seconds: int = 0,
    now: Optional[datetime] = None,
) -> None:
    """Persist a graded card together with its review log entry."""
    if now is None:
        now = datetime.now(timezone.utc)
    if card.last_result is None:
        raise ValueError("Only graded cards can be recorded as reviews.")

    apply_card(row, card)
    row.updated_at = now

    session.add(
        VocabularyReview(
            vocabulary_progress_id=row.id,
            result=card.last_result.value,
            interval_days=card.interval_days,
            ease_factor=card.ease_factor,
            time_spent_seconds=time_spent_seconds,
            reviewed_at=now,
        )
    )
    await session.flush()


async def get_due_vocabulary(
    session: AsyncSession,
    learner_id: str,
    today: date,
    limit: Optional[int] = None,
) -> Sequence[VocabularyProgress]:
    """Return the learner's cards due on or before ``today``, oldest due date first."""
    stmt = (
        select(VocabularyProgress)
        .where(
            VocabularyProgress.learner_id == learner_id,
            VocabularyProgress.next_review_date <= today,
        )
        .order_by(VocabularyProgress.next_review_date, VocabularyProgress.id)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()
