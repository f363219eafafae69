"""
Pydantic schemas for test submission.
"""
from pydantic import Field, field_validator
from typing import List, Optional

from app.core.validators import StringSanitizer, TextValidator
from app.models.models import ResultStatus
from app.schemas.common import CamelModel
from app.schemas.protocol import ProtocolEntry


class SubmittedAnswer(CamelModel):
    """
    One answered question.

    answer_ids holds option ids for select-kind questions, the ordered
    right-hand values for match-kind, and the typed text as the single
    element for free-text.
    """

    question_id: str = Field(..., min_length=1, max_length=64)
    answer_ids: List[str] = Field(default_factory=list)

    @field_validator("answer_ids")
    @classmethod
    def sanitize_values(cls, v: List[str]) -> List[str]:
        return [StringSanitizer.sanitize_answer(value) for value in v]


class SubmissionRequest(CamelModel):
    respondent: str = Field(..., min_length=1, max_length=255)
    answers: List[SubmittedAnswer] = Field(default_factory=list)

    @field_validator("respondent")
    @classmethod
    def validate_respondent(cls, v: str) -> str:
        return TextValidator.validate_non_empty_text(
            StringSanitizer.sanitize_name(v), "Respondent"
        )


class SubmissionResponse(CamelModel):
    """
    Outcome of a submission.

    A pending_review result carries only status and result_id; a completed
    one carries the score and the protocol.
    """

    status: ResultStatus
    result_id: int
    respondent: Optional[str] = None
    test_name: Optional[str] = None
    score: Optional[int] = None
    total: Optional[int] = None
    percentage: Optional[float] = None
    passed: Optional[bool] = None
    protocol_data: Optional[List[ProtocolEntry]] = None
