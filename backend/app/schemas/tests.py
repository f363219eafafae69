"""
Pydantic schemas for tests, their settings and the public catalogue.
"""
from datetime import datetime
from pydantic import Field, field_validator
from typing import Optional

from app.core.validators import StringSanitizer, TextValidator
from app.schemas.common import CamelModel


def _clean_name(value: str) -> str:
    return TextValidator.validate_non_empty_text(
        StringSanitizer.sanitize_name(value), "Test name"
    )


class CatalogueEntry(CamelModel):
    """Active test as listed to respondents."""

    id: str
    name: str
    duration_minutes: int
    passing_score: int
    questions_per_test: int
    passed_status: bool = Field(
        False, description="The respondent already passed this test"
    )


class AdminTestOut(CamelModel):
    id: str
    name: str
    is_active: bool
    created_at: Optional[datetime] = None
    has_pending_reviews: bool = False


class TestCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)


class TestRename(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)


class TestStatusUpdate(CamelModel):
    is_active: bool


class TestSettingsIn(CamelModel):
    duration_minutes: int = Field(..., ge=1, le=180)
    passing_score: int = Field(..., ge=1, le=100)
    questions_per_test: int = Field(..., ge=1, le=100)


class TestSettingsOut(TestSettingsIn):
    test_id: str
