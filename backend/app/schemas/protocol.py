"""
Pydantic schemas for result protocols.
"""
from datetime import datetime
from pydantic import Field
from typing import List, Optional

from app.models.models import QuestionKind, ResultStatus, ReviewStatus
from app.schemas.common import CamelModel


class ProtocolEntry(CamelModel):
    """Per-question line of a protocol."""

    question_id: Optional[str] = None
    question_text: str
    type: QuestionKind
    chosen_answer_text: str
    correct_answer_text: str
    is_correct: bool
    explanation: Optional[str] = None
    review_status: ReviewStatus
    match_prompts: List[str] = Field(default_factory=list)
    chosen_answers_match: List[str] = Field(default_factory=list)
    correct_answers_match: List[str] = Field(default_factory=list)


class ResultSummary(CamelModel):
    test_id: str
    test_name: Optional[str] = None
    respondent: str
    score: int
    total: int
    percentage: float
    date: datetime
    status: ResultStatus
    passed: bool
    passing_score: Optional[int] = None


class ProtocolResponse(CamelModel):
    summary: ResultSummary
    protocol: List[ProtocolEntry]


class LastResultResponse(ResultSummary):
    """Summary of the latest passed result, flattened with its protocol."""

    result_id: int
    protocol_data: List[ProtocolEntry]
