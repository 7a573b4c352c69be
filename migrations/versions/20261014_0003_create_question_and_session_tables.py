"""Add per-question mastery tracking and scored practice-test sessions."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261014_0003"
down_revision: Union[str, None] = "20261012_0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "question_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("learner_id", sa.String(length=36), nullable=False),
        sa.Column("question_id", sa.String(length=36), nullable=False),
        sa.Column("mastery_level", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("review_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("next_review_date", sa.Date(), nullable=True),
        sa.Column("last_correct", sa.Boolean(), nullable=True),
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
            name="fk_question_progress_learner_id_learners",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("learner_id", "question_id", name="uq_question_progress_learner_question"),
        sa.CheckConstraint(
            "mastery_level BETWEEN 0 AND 5",
            name="ck_question_progress_mastery_level",
        ),
    )
    op.create_index(
        "ix_question_progress_learner_id_next_review_date",
        "question_progress",
        ("learner_id", "next_review_date"),
    )

    op.create_table(
        "test_sessions",
        sa.Column("session_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("learner_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'completed'"), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("section_scores", sa.JSON(), nullable=False),
        sa.Column("weak_parts", sa.JSON(), nullable=False),
        sa.Column("strong_parts", sa.JSON(), nullable=False),
        sa.Column("score_listening", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("score_reading", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ("learner_id",),
            ("learners.learner_id",),
            name="fk_test_sessions_learner_id_learners",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_test_sessions_learner_id", "test_sessions", ("learner_id",))


def downgrade() -> None:
    op.drop_index("ix_test_sessions_learner_id", table_name="test_sessions")
    op.drop_table("test_sessions")
    op.drop_index("ix_question_progress_learner_id_next_review_date", table_name="question_progress")
    op.drop_table("question_progress")
