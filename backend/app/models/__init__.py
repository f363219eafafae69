"""
Models package for the quiz service.
"""
from .base import Base, async_engine, AsyncSessionLocal, get_db
from .models import (
    Test,
    TestSettings,
    Question,
    QuestionOption,
    TestResult,
    TestAnswer,
    QuestionKind,
    ResultStatus,
    ReviewStatus,
)

__all__ = [
    "Base",
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "Test",
    "TestSettings",
    "Question",
    "QuestionOption",
    "TestResult",
    "TestAnswer",
    "QuestionKind",
    "ResultStatus",
    "ReviewStatus",
]
