"""
Pydantic schemas for manual review of free-text answers.
"""
from pydantic import Field, StrictBool
from typing import List, Optional

from app.schemas.common import CamelModel


class PendingReviewItem(CamelModel):
    """A free-text answer awaiting a verdict."""

    answer_id: int
    question_id: Optional[str] = None
    question_text: str
    user_answer: str
    explanation: Optional[str] = None


class Verdict(CamelModel):
    answer_id: int = Field(..., gt=0)
    # Strict: "true" or 1 are rejected rather than coerced
    is_correct: StrictBool


class VerdictBatchRequest(CamelModel):
    verdicts: List[Verdict] = Field(..., min_length=1)


class VerdictBatchResponse(CamelModel):
    success: bool = True
    is_finalized: bool
