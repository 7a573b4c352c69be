"""Create spaced-repetition tables for vocabulary cards."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261012_0002"
down_revision: Union[str, None] = "20261012_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "vocabulary_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("learner_id", sa.String(length=36), nullable=False),
        sa.Column("vocab_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'learning'"), nullable=False),
        sa.Column("next_review_date", sa.Date(), nullable=False),
        sa.Column("interval_days", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("ease_factor", sa.Float(), server_default=sa.text("2.5"), nullable=False),
        sa.Column("review_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_review_result", sa.String(length=10), nullable=True),
        sa.Column("total_review_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("learner_id",),
            ("learners.learner_id",),
            name="fk_vocabulary_progress_learner_id_learners",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("learner_id", "vocab_id", name="uq_vocabulary_progress_learner_vocab"),
        sa.CheckConstraint(
            "status IN ('learning', 'reviewing', 'mastered')",
            name="ck_vocabulary_progress_status",
        ),
        sa.CheckConstraint("ease_factor >= 1.3", name="ck_vocabulary_progress_ease_floor"),
    )
    op.create_index(
        "ix_vocabulary_progress_learner_id_next_review_date",
        "vocabulary_progress",
        ("learner_id", "next_review_date"),
    )

    op.create_table(
        "vocabulary_reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("vocabulary_progress_id", sa.Integer(), nullable=False),
        sa.Column("result", sa.String(length=10), nullable=False),
        sa.Column("interval_days", sa.Integer(), nullable=False),
        sa.Column("ease_factor", sa.Float(), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "reviewed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("vocabulary_progress_id",),
            ("vocabulary_progress.id",),
            name="fk_vocabulary_reviews_vocabulary_progress_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_vocabulary_reviews_vocabulary_progress_id",
        "vocabulary_reviews",
        ("vocabulary_progress_id",),
    )


def downgrade() -> None:
    op.drop_index("ix_vocabulary_reviews_vocabulary_progress_id", table_name="vocabulary_reviews")
    op.drop_table("vocabulary_reviews")
    op.drop_index("ix_vocabulary_progress_learner_id_next_review_date", table_name="vocabulary_progress")
    op.drop_table("vocabulary_progress")
