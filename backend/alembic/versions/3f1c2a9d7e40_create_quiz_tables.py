"""create quiz tables

Revision ID: 3f1c2a9d7e40
Revises:
Create Date: 2026-10-19 09:12:44.118302

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7e40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

question_kind = sa.Enum("checkbox", "match", "text_input", name="question_kind")
result_status = sa.Enum("completed", "pending_review", name="result_status")
review_status = sa.Enum(
    "auto", "pending", "manual_correct", "manual_incorrect", name="review_status"
)


def upgrade() -> None:
    """Create tests, settings, questions, options, results and answers."""
    op.create_table(
        "tests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "test_settings",
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("passing_score", sa.Integer(), nullable=False),
        sa.Column("questions_per_test", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("test_id"),
    )
    op.create_table(
        "questions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("kind", question_kind, nullable=False),
        sa.Column("correct_option_keys", sa.JSON(), nullable=False),
        sa.Column("match_prompts", sa.JSON(), nullable=False),
        sa.Column("match_answers", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_test_id", "questions", ["test_id"])
    op.create_table(
        "options",
        sa.Column("id", sa.String(length=80), nullable=False),
        sa.Column("question_id", sa.String(length=36), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["question_id"], ["questions.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "test_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("respondent", sa.String(length=255), nullable=False),
        sa.Column("respondent_key", sa.String(length=255), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", result_status, nullable=False),
        sa.Column("passed", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_results_id", "test_results", ["id"])
    op.create_index("ix_test_results_status", "test_results", ["status"])
    # Already-passed lookup and catalogue passedStatus join
    op.create_index(
        "ix_test_results_test_respondent",
        "test_results",
        ["test_id", "respondent_key", "passed"],
    )
    op.create_table(
        "test_answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("result_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.String(length=36), nullable=True),
        sa.Column("user_answer", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("review_status", review_status, nullable=False),
        sa.ForeignKeyConstraint(
            ["result_id"], ["test_results.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["question_id"], ["questions.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_answers_id", "test_answers", ["id"])
    op.create_index("ix_test_answers_result_id", "test_answers", ["result_id"])
    op.create_index(
        "ix_test_answers_result_review",
        "test_answers",
        ["result_id", "review_status"],
    )


def downgrade() -> None:
    """Drop all quiz tables and their enum types."""
    op.drop_index("ix_test_answers_result_review", table_name="test_answers")
    op.drop_index("ix_test_answers_result_id", table_name="test_answers")
    op.drop_index("ix_test_answers_id", table_name="test_answers")
    op.drop_table("test_answers")
    op.drop_index("ix_test_results_test_respondent", table_name="test_results")
    op.drop_index("ix_test_results_status", table_name="test_results")
    op.drop_index("ix_test_results_id", table_name="test_results")
    op.drop_table("test_results")
    op.drop_table("options")
    op.drop_index("ix_questions_test_id", table_name="questions")
    op.drop_table("questions")
    op.drop_table("test_settings")
    op.drop_table("tests")

    bind = op.get_bind()
    review_status.drop(bind, checkfirst=True)
    result_status.drop(bind, checkfirst=True)
    question_kind.drop(bind, checkfirst=True)
