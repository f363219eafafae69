"""
Database models for the quiz service.

Tables: tests, test_settings, questions, options, test_results, test_answers.
Results own their answers (cascade delete); answers only reference questions
weakly (SET NULL) so a graded attempt survives question deletion.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Enum,
    Float,
    Index,
    JSON,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
import uuid

from .base import Base
from .types import AnswerPayloadType


def _enum_values(enum_cls):
    """Persist enum values ("pending_review") rather than member names."""
    return [member.value for member in enum_cls]


def _new_uuid() -> str:
    return str(uuid.uuid4())


class QuestionKind(str, enum.Enum):
    """Question kind enumeration."""

    CHECKBOX = "checkbox"  # single/multi-select
    MATCH = "match"  # ordered matching
    TEXT_INPUT = "text_input"  # free text, manually graded


class ResultStatus(str, enum.Enum):
    """Result status enumeration. Only PENDING_REVIEW -> COMPLETED is allowed."""

    COMPLETED = "completed"
    PENDING_REVIEW = "pending_review"


class ReviewStatus(str, enum.Enum):
    """Answer review status enumeration.

    AUTO and both MANUAL_* values are terminal; PENDING moves exactly once to
    one of the manual states.
    """

    AUTO = "auto"
    PENDING = "pending"
    MANUAL_CORRECT = "manual_correct"
    MANUAL_INCORRECT = "manual_incorrect"


class Test(Base):
    """A published (or draft) test: a named pool of questions."""

    __tablename__ = "tests"
    __test__ = False  # not a pytest test class

    id = Column(String(36), primary_key=True, default=_new_uuid)
    name = Column(String(255), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    is_active = Column(Boolean, default=False, nullable=False)

    # Relationships
    settings = relationship(
        "TestSettings",
        back_populates="test",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    questions = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    results = relationship(
        "TestResult",
        back_populates="test",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class TestSettings(Base):
    """Per-test attempt rules: time budget, pass mark and sample size."""

    __tablename__ = "test_settings"
    __test__ = False

    test_id = Column(
        String(36), ForeignKey("tests.id", ondelete="CASCADE"), primary_key=True
    )
    duration_minutes = Column(Integer, default=10, nullable=False)
    passing_score = Column(Integer, default=5, nullable=False)
    questions_per_test = Column(Integer, default=10, nullable=False)

    test = relationship("Test", back_populates="settings")


class Question(Base):
    """Question definition together with its canonical answer."""

    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    test_id = Column(
        String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    text = Column(Text, nullable=False)
    explanation = Column(Text)  # shown only after grading
    kind = Column(
        Enum(QuestionKind, values_callable=_enum_values, name="question_kind"),
        default=QuestionKind.CHECKBOX,
        nullable=False,
    )
    # Select kind: suffix keys of the correct options ("a", "c")
    correct_option_keys = Column(JSON, default=list, nullable=False)
    # Match kind: index-aligned prompts and right-hand answers
    match_prompts = Column(JSON, default=list, nullable=False)
    match_answers = Column(JSON, default=list, nullable=False)

    # Relationships
    test = relationship("Test", back_populates="questions")
    options = relationship(
        "QuestionOption",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuestionOption.position",
    )

    __table_args__ = (Index("ix_questions_test_id", "test_id"),)

    def option_id_prefix(self) -> str:
        """Prefix shared by the ids of every option of this question."""
        return f"{self.id}-"


class QuestionOption(Base):
    """Answer option of a select-kind question.

    The id is "{question_id}-{key}"; the key is what the canonical answer stores.
    """

    __tablename__ = "options"

    id = Column(String(80), primary_key=True)
    question_id = Column(
        String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    text = Column(Text, nullable=False)
    position = Column(Integer, default=0, nullable=False)

    question = relationship("Question", back_populates="options")

    @property
    def key(self) -> str:
        prefix = f"{self.question_id}-"
        if self.id.startswith(prefix):
            return self.id[len(prefix) :]
        return self.id


class TestResult(Base):
    """One row per attempt; owns the per-question answers."""

    __tablename__ = "test_results"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    respondent = Column(String(255), nullable=False)
    # Sanitized, casefolded respondent; every "same respondent" lookup uses it
    respondent_key = Column(String(255), nullable=False)
    # Provisional while status is pending_review; recomputed on finalization
    score = Column(Integer, nullable=False)
    total = Column(Integer, nullable=False)
    percentage = Column(Float, nullable=False)
    date = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    status = Column(
        Enum(ResultStatus, values_callable=_enum_values, name="result_status"),
        default=ResultStatus.COMPLETED,
        nullable=False,
    )
    passed = Column(Boolean, default=False, nullable=False)

    # Relationships
    test = relationship("Test", back_populates="results")
    answers = relationship(
        "TestAnswer",
        back_populates="result",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TestAnswer.id",
    )

    __table_args__ = (
        Index("ix_test_results_status", "status"),
        Index(
            "ix_test_results_test_respondent", "test_id", "respondent_key", "passed"
        ),
    )


class TestAnswer(Base):
    """Answer given to one question within one attempt."""

    __tablename__ = "test_answers"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    result_id = Column(
        Integer,
        ForeignKey("test_results.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        String(36),
        ForeignKey("questions.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_answer = Column(AnswerPayloadType(), nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    review_status = Column(
        Enum(ReviewStatus, values_callable=_enum_values, name="review_status"),
        default=ReviewStatus.AUTO,
        nullable=False,
    )

    # Relationships
    result = relationship("TestResult", back_populates="answers")
    question = relationship("Question")

    __table_args__ = (Index("ix_test_answers_result_review", "result_id", "review_status"),)
