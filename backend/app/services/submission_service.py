"""
Result aggregation: turning a submitted attempt into a persisted result.

Order of operations in submit_test:
1. Preconditions (settings exist, attempt started and not expired, not
   already passed). Nothing is written if any of them fails.
2. Canonical questions are re-read with ``test_id = X AND id IN (...)``; a
   question id from another test is dropped here and never counted.
3. Each retained answer is scored; free-text answers are deferred.
4. The result and all of its answers are inserted in one transaction.
5. After commit: the attempt marker is cleared and ``new-result`` published.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.attempt_context import AttemptContext
from app.core.config import settings
from app.core.datetime_utils import utc_now
from app.core.db_error_handling import atomic
from app.core.error_responses import ErrorMessages
from app.core.exceptions import (
    AlreadyPassedError,
    InvalidInputError,
    NotFoundError,
    TimeExpiredError,
)
from app.core.scoring import ScoreOutcome, calculate_percentage, is_passed, score_answer
from app.core.validators import StringSanitizer
from app.models import (
    Question,
    ResultStatus,
    ReviewStatus,
    Test,
    TestAnswer,
    TestResult,
    TestSettings,
)
from app.schemas.submissions import SubmissionResponse, SubmittedAnswer
from app.services.event_hub import NEW_RESULT, EventHub
from app.services.protocol_service import build_protocol
from app.services.result_service import find_last_passed_result_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredAnswer:
    question_id: str
    outcome: ScoreOutcome


@dataclass(frozen=True)
class ScoredSubmission:
    """Aggregate of every retained answer of one attempt."""

    answers: List[ScoredAnswer]
    score: int
    total: int
    has_pending: bool

    @property
    def status(self) -> ResultStatus:
        return ResultStatus.PENDING_REVIEW if self.has_pending else ResultStatus.COMPLETED

    @property
    def percentage(self) -> int:
        return calculate_percentage(self.score, self.total)


async def load_canonical_questions(
    db: AsyncSession, test_id: str, question_ids: Sequence[str]
) -> Dict[str, Question]:
    """
    Load the canonical definitions of the submitted questions.

    Both filters apply: a question must belong to test_id AND be among the
    submitted ids.
    """
    if not question_ids:
        return {}
    result = await db.execute(
        select(Question)
        .options(selectinload(Question.options))
        .where(Question.test_id == test_id, Question.id.in_(list(question_ids)))
    )
    return {question.id: question for question in result.scalars().all()}


def score_submission(
    answers: Sequence[SubmittedAnswer], questions: Dict[str, Question]
) -> ScoredSubmission:
    """
    Score every answer whose question is in ``questions``.

    Answers to unknown questions are dropped. When the same question is
    answered twice only the first answer counts.
    """
    scored: List[ScoredAnswer] = []
    seen = set()
    for answer in answers:
        question = questions.get(answer.question_id)
        if question is None or question.id in seen:
            continue
        seen.add(question.id)
        scored.append(ScoredAnswer(question.id, score_answer(question, answer.answer_ids)))

    return ScoredSubmission(
        answers=scored,
        score=sum(1 for item in scored if item.outcome.counts_toward_score),
        total=len(scored),
        has_pending=any(
            item.outcome.review_status == ReviewStatus.PENDING for item in scored
        ),
    )


def _check_time_budget(
    attempt: AttemptContext, test_id: str, test_settings: TestSettings
) -> None:
    elapsed = attempt.elapsed_seconds(test_id)
    if elapsed is None:
        raise InvalidInputError(ErrorMessages.TEST_NOT_STARTED)

    allowed = test_settings.duration_minutes * 60 + settings.SUBMISSION_GRACE_SECONDS
    if elapsed > allowed:
        attempt.clear(test_id)
        logger.info(
            f"Attempt for test {test_id} expired: {elapsed:.1f}s elapsed, "
            f"{allowed}s allowed"
        )
        raise TimeExpiredError(ErrorMessages.TIME_EXPIRED)


def _new_result_event(result: TestResult, test_name: str) -> dict:
    return {
        "id": result.id,
        "respondent": result.respondent,
        "score": result.score,
        "total": result.total,
        "percentage": result.percentage,
        "date": result.date.isoformat(),
        "testId": result.test_id,
        "testName": test_name,
        "status": result.status.value,
        "passed": result.passed,
    }


async def submit_test(
    db: AsyncSession,
    test_id: str,
    respondent: str,
    answers: Sequence[SubmittedAnswer],
    attempt: AttemptContext,
    hub: EventHub,
) -> SubmissionResponse:
    """
    Score and persist one attempt.

    Args:
        db: Database session
        test_id: Test being submitted
        respondent: Respondent name (already sanitized)
        answers: Submitted answers
        attempt: Session-scoped attempt timing for this client
        hub: Event hub notified after commit

    Returns:
        Completed results carry score and protocol; pending_review results
        carry only status and result_id.

    Raises:
        NotFoundError: If the test or its settings do not exist
        InvalidInputError: If the attempt was never started
        TimeExpiredError: If the time budget plus grace has run out
        AlreadyPassedError: If the respondent already passed this test
        InternalError: If the store fails; nothing is persisted
    """
    test_settings = await db.get(TestSettings, test_id)
    if test_settings is None:
        raise NotFoundError(ErrorMessages.test_not_found(test_id))

    _check_time_budget(attempt, test_id, test_settings)

    if await find_last_passed_result_id(db, test_id, respondent) is not None:
        attempt.clear(test_id)
        logger.info(f"Rejected repeat submission for already passed test {test_id}")
        raise AlreadyPassedError(ErrorMessages.ALREADY_PASSED)

    test = await db.get(Test, test_id)
    test_name = test.name if test is not None else ""

    questions = await load_canonical_questions(
        db, test_id, [answer.question_id for answer in answers]
    )
    submission = score_submission(answers, questions)
    completed = not submission.has_pending

    result = TestResult(
        test_id=test_id,
        respondent=respondent,
        respondent_key=StringSanitizer.respondent_key(respondent),
        score=submission.score,
        total=submission.total,
        percentage=submission.percentage,
        date=utc_now(),
        status=submission.status,
        passed=is_passed(completed, submission.score, test_settings.passing_score),
        answers=[
            TestAnswer(
                question_id=item.question_id,
                user_answer=item.outcome.payload,
                is_correct=item.outcome.is_correct,
                review_status=item.outcome.review_status,
            )
            for item in submission.answers
        ],
    )

    async with atomic(db, "submit test"):
        db.add(result)

    attempt.clear(test_id)
    logger.info(
        f"Stored result {result.id} for test {test_id}: "
        f"status={result.status.value} score={result.score}/{result.total}",
        extra={"test_id": test_id, "result_id": result.id},
    )
    hub.publish(NEW_RESULT, _new_result_event(result, test_name))

    if not completed:
        return SubmissionResponse(status=result.status, result_id=result.id)

    protocol = await build_protocol(db, result.id)
    return SubmissionResponse(
        status=result.status,
        result_id=result.id,
        respondent=result.respondent,
        test_name=test_name,
        score=result.score,
        total=result.total,
        percentage=result.percentage,
        passed=result.passed,
        protocol_data=protocol.protocol,
    )
