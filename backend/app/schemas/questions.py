"""
Pydantic schemas for question endpoints (test taking and administration).
"""
from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from typing_extensions import Self

from app.core.validators import TextValidator
from app.models.models import QuestionKind
from app.schemas.common import CamelModel


# =============================================================================
# Test taking
# =============================================================================


class OptionOut(CamelModel):
    """Selectable option as shown to the respondent."""

    id: str = Field(..., description="Full option id: '{questionId}-{key}'")
    text: str


class QuestionOut(CamelModel):
    """
    Question as served to a respondent.

    Never carries canonical answers. For match-kind questions match_answers
    holds the right-hand values in shuffled order.
    """

    id: str
    text: str
    type: QuestionKind
    options: List[OptionOut] = Field(default_factory=list)
    match_prompts: List[str] = Field(default_factory=list)
    match_answers: List[str] = Field(default_factory=list)


class TestQuestionsResponse(CamelModel):
    """Sampled question set and time budget for one attempt."""

    questions: List[QuestionOut]
    duration: int = Field(..., description="Time budget in seconds")
    end_time: int = Field(..., description="Attempt deadline, epoch milliseconds")


class StartTestResponse(CamelModel):
    success: bool = True
    start_time: int = Field(..., description="Recorded start, epoch milliseconds")


# =============================================================================
# Administration
# =============================================================================


class OptionIn(CamelModel):
    """
    Option in an admin question payload.

    Either key or id may identify the option; the key is the suffix kept in
    the canonical answer. A missing key is generated.
    """

    id: Optional[str] = None
    key: Optional[str] = Field(None, max_length=36, pattern=r"^[A-Za-z0-9_]+$")
    text: str


class QuestionSave(CamelModel):
    """Create/update payload for a question of any kind."""

    text: str = Field(..., min_length=1)
    explanation: Optional[str] = None
    type: QuestionKind = QuestionKind.CHECKBOX
    options: List[OptionIn] = Field(default_factory=list)
    correct: List[str] = Field(
        default_factory=list, description="Keys of the correct options"
    )
    match_prompts: List[str] = Field(default_factory=list)
    match_answers: List[str] = Field(default_factory=list)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return TextValidator.validate_non_empty_text(v, "Question text")

    @model_validator(mode="after")
    def validate_match_lists(self) -> Self:
        """Prompts and answers of a match question must be index-aligned."""
        if self.type == QuestionKind.MATCH and len(self.match_prompts) != len(
            self.match_answers
        ):
            raise ValueError("matchPrompts and matchAnswers must have the same length")
        return self


class AdminOptionOut(CamelModel):
    id: str
    key: str
    text: str


class AdminQuestionOut(CamelModel):
    """Question with its canonical answer, for administrators only."""

    id: str
    test_id: str
    text: str
    explanation: Optional[str] = None
    type: QuestionKind
    options: List[AdminOptionOut] = Field(default_factory=list)
    correct: List[str] = Field(default_factory=list)
    match_prompts: List[str] = Field(default_factory=list)
    match_answers: List[str] = Field(default_factory=list)
