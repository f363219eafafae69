"""
Pydantic schemas for the admin result listing.
"""
from datetime import datetime
from typing import List, Literal

from pydantic import Field

from app.models.models import ResultStatus
from app.schemas.common import CamelModel

SortColumn = Literal["id", "respondent", "score", "percentage", "date", "status"]
SortOrder = Literal["asc", "desc"]


class ResultRow(CamelModel):
    id: int
    respondent: str
    score: int
    total: int
    percentage: float
    date: datetime
    status: ResultStatus
    passed: bool


class ResultPage(CamelModel):
    results: List[ResultRow]
    total_results: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=1)
    current_page: int = Field(..., ge=1)
