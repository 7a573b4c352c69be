"""Log individual question attempts and store the total session score."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0004"
down_revision: Union[str, None] = "20261014_0003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "question_attempts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("question_progress_id", sa.Integer(), nullable=False),
        sa.Column("learner_id", sa.String(length=36), nullable=False),
        sa.Column("question_id", sa.String(length=36), nullable=False),
        sa.Column("session_id", sa.String(length=36), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("mastery_level", sa.Integer(), nullable=False),
        sa.Column(
            "attempted_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("question_progress_id",),
            ("question_progress.id",),
            name="fk_question_attempts_question_progress_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_question_attempts_learner_id_question_id",
        "question_attempts",
        ("learner_id", "question_id"),
    )
    op.create_index("ix_question_attempts_session_id", "question_attempts", ("session_id",))

    with op.batch_alter_table("test_sessions") as batch_op:
        batch_op.add_column(
            sa.Column("total_score", sa.Integer(), server_default=sa.text("0"), nullable=False)
        )
    op.execute("UPDATE test_sessions SET total_score = score_listening + score_reading")


def downgrade() -> None:
    with op.batch_alter_table("test_sessions") as batch_op:
        batch_op.drop_column("total_score")
    op.drop_index("ix_question_attempts_session_id", table_name="question_attempts")
    op.drop_index("ix_question_attempts_learner_id_question_id", table_name="question_attempts")
    op.drop_table("question_attempts")
