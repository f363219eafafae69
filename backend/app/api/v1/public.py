"""
Public test-taking endpoints.

Attempt start times live in the signed session cookie (see AttemptContext),
so these endpoints need SessionMiddleware installed on the application.
"""
import logging
import random
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.attempt_context import AttemptContext
from app.core.datetime_utils import to_epoch_millis
from app.core.test_composition import sample_questions
from app.models import Question, QuestionKind, get_db
from app.schemas.protocol import LastResultResponse
from app.schemas.questions import (
    OptionOut,
    QuestionOut,
    StartTestResponse,
    TestQuestionsResponse,
)
from app.schemas.submissions import SubmissionRequest, SubmissionResponse
from app.schemas.tests import CatalogueEntry
from app.services import result_service, test_service
from app.services.event_hub import EventHub, get_event_hub
from app.services.submission_service import submit_test

logger = logging.getLogger(__name__)

router = APIRouter()


def get_attempt_context(request: Request) -> AttemptContext:
    """Dependency: attempt timing bound to the caller's session."""
    return AttemptContext(request.session)


def question_for_respondent(question: Question) -> QuestionOut:
    """
    Public view of a question: no canonical answer, display order shuffled.

    Shuffling is presentation only; scoring never depends on it.
    """
    options = [OptionOut(id=o.id, text=o.text) for o in question.options]
    match_answers = list(question.match_answers or [])
    return QuestionOut(
        id=question.id,
        text=question.text,
        type=question.kind,
        options=random.sample(options, len(options))
        if question.kind == QuestionKind.CHECKBOX
        else [],
        match_prompts=list(question.match_prompts or []),
        match_answers=random.sample(match_answers, len(match_answers)),
    )


@router.get("/tests", response_model=List[CatalogueEntry])
async def list_public_tests(
    respondent: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    """
    Active tests with their settings.

    passedStatus is true for tests the given respondent has already passed.
    """
    return await test_service.list_catalogue(db, respondent)


@router.get("/results/last", response_model=LastResultResponse)
async def get_last_passed_result(
    test_id: Optional[str] = Query(None, alias="testId"),
    respondent: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    """Summary and protocol of the respondent's latest passed result."""
    return await result_service.get_last_passed_protocol(db, test_id, respondent)


@router.post("/tests/{test_id}/start", response_model=StartTestResponse)
async def start_test(
    test_id: str, attempt: AttemptContext = Depends(get_attempt_context)
):
    """Record the attempt start server-side and return it (epoch ms)."""
    started = attempt.start(test_id)
    return StartTestResponse(success=True, start_time=to_epoch_millis(started))


@router.get("/tests/{test_id}/questions", response_model=TestQuestionsResponse)
async def get_test_questions(
    test_id: str,
    db: AsyncSession = Depends(get_db),
    attempt: AttemptContext = Depends(get_attempt_context),
):
    """
    Random question sample and time budget for an attempt.

    Returns 404 when the test is missing or unpublished. When no start was
    recorded for this session, the attempt starts now.
    """
    questions, test_settings = await sample_questions(db, test_id)
    started = attempt.ensure_started(test_id)
    duration_seconds = test_settings.duration_minutes * 60

    return TestQuestionsResponse(
        questions=[question_for_respondent(q) for q in questions],
        duration=duration_seconds,
        end_time=to_epoch_millis(started) + duration_seconds * 1000,
    )


@router.post(
    "/tests/{test_id}/submit",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
)
async def submit_test_answers(
    test_id: str,
    body: SubmissionRequest,
    db: AsyncSession = Depends(get_db),
    attempt: AttemptContext = Depends(get_attempt_context),
    hub: EventHub = Depends(get_event_hub),
):
    """
    Score and store an attempt.

    A result with free-text answers comes back as
    ``{"status": "pending_review", "resultId": ...}``; anything else comes back
    completed with score, total, percentage, passed and protocolData.
    """
    return await submit_test(
        db, test_id, body.respondent, body.answers, attempt, hub
    )
