"""
Manual review of free-text answers and result finalization.

State machine:
    answer:  pending -> manual_correct | manual_incorrect   (terminal)
    result:  pending_review -> completed                      (terminal)

A result is pending_review exactly while at least one of its answers is
pending. submit_batch applies a batch of verdicts and, when the batch
resolves the last pending answer, finalizes the result in the same
transaction.

Both steps are guarded writes rather than locked reads:
- an answer update only matches rows still in ``pending``, so replaying a
  batch changes nothing;
- the finalizing update only matches a result still in ``pending_review``,
  so two reviewers finishing at once finalize it once.
The pending count itself is an unlocked read; under concurrent reviewers of
the same result it is advisory.
"""
import logging
from typing import List, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_error_handling import atomic
from app.core.error_responses import ErrorMessages
from app.core.exceptions import InvalidInputError, NotFoundError
from app.core.scoring import calculate_percentage
from app.models import (
    Question,
    ResultStatus,
    ReviewStatus,
    TestAnswer,
    TestResult,
    TestSettings,
)
from app.models.types import TextAnswer
from app.schemas.review import PendingReviewItem, Verdict, VerdictBatchResponse
from app.services.event_hub import RESULT_REVIEWED, EventHub
from app.services.protocol_service import (
    QUESTION_REMOVED,
    build_protocol,
    protocol_event_payload,
)

logger = logging.getLogger(__name__)

# Pass mark used when a test's settings row has disappeared
FALLBACK_PASSING_SCORE = 1


def verdict_status(is_correct: bool) -> ReviewStatus:
    return ReviewStatus.MANUAL_CORRECT if is_correct else ReviewStatus.MANUAL_INCORRECT


async def get_pending_reviews(
    db: AsyncSession, result_id: int
) -> List[PendingReviewItem]:
    """
    Free-text answers of a result that still await a verdict.

    Raises:
        NotFoundError: If the result does not exist
    """
    if await db.get(TestResult, result_id) is None:
        raise NotFoundError(ErrorMessages.result_not_found(result_id))

    rows = (
        await db.execute(
            select(TestAnswer, Question.text, Question.explanation)
            .outerjoin(Question, Question.id == TestAnswer.question_id)
            .where(
                TestAnswer.result_id == result_id,
                TestAnswer.review_status == ReviewStatus.PENDING,
            )
            .order_by(TestAnswer.id)
            .execution_options(populate_existing=True)
        )
    ).all()

    items = []
    for answer, question_text, explanation in rows:
        payload = answer.user_answer
        user_answer = payload.text if isinstance(payload, TextAnswer) else ", ".join(
            payload.display_values()
        )
        items.append(
            PendingReviewItem(
                answer_id=answer.id,
                question_id=answer.question_id,
                question_text=question_text or QUESTION_REMOVED,
                user_answer=user_answer,
                explanation=explanation,
            )
        )
    return items


async def _resolve_result_id(db: AsyncSession, verdicts: Sequence[Verdict]) -> int:
    """
    Owning result of a batch.

    Raises:
        NotFoundError: If any answer id does not exist
        InvalidInputError: If the answers belong to more than one result
    """
    answer_ids = {verdict.answer_id for verdict in verdicts}
    rows = (
        await db.execute(
            select(TestAnswer.id, TestAnswer.result_id).where(
                TestAnswer.id.in_(list(answer_ids))
            )
        )
    ).all()

    missing = answer_ids - {row.id for row in rows}
    if missing:
        raise NotFoundError(ErrorMessages.answers_not_found(missing))

    result_ids = {row.result_id for row in rows}
    if len(result_ids) != 1:
        raise InvalidInputError(ErrorMessages.MIXED_RESULT_BATCH)
    return result_ids.pop()


async def _apply_verdicts(db: AsyncSession, result_id: int, verdicts: Sequence[Verdict]) -> int:
    """Apply verdicts to still-pending answers. Returns how many rows changed."""
    applied = 0
    for verdict in verdicts:
        outcome = await db.execute(
            update(TestAnswer)
            .where(
                TestAnswer.id == verdict.answer_id,
                TestAnswer.result_id == result_id,
                TestAnswer.review_status == ReviewStatus.PENDING,
            )
            .values(
                review_status=verdict_status(verdict.is_correct),
                is_correct=verdict.is_correct,
            )
            .execution_options(synchronize_session=False)
        )
        applied += outcome.rowcount or 0
    return applied


async def count_pending(db: AsyncSession, result_id: int) -> int:
    return (
        await db.execute(
            select(func.count(TestAnswer.id)).where(
                TestAnswer.result_id == result_id,
                TestAnswer.review_status == ReviewStatus.PENDING,
            )
        )
    ).scalar_one()


async def _finalize(db: AsyncSession, result_id: int) -> bool:
    """
    Recompute score over every answer and complete the result.

    The provisional score stored at submission is discarded. Returns True
    only if this call moved the result out of pending_review.
    """
    result_row = (
        await db.execute(
            select(TestResult.test_id, TestResult.total).where(TestResult.id == result_id)
        )
    ).one()
    final_score = (
        await db.execute(
            select(func.count(TestAnswer.id)).where(
                TestAnswer.result_id == result_id,
                TestAnswer.is_correct.is_(True),
            )
        )
    ).scalar_one()
    passing_score = (
        await db.execute(
            select(TestSettings.passing_score).where(
                TestSettings.test_id == result_row.test_id
            )
        )
    ).scalar_one_or_none()
    if passing_score is None:
        passing_score = FALLBACK_PASSING_SCORE

    outcome = await db.execute(
        update(TestResult)
        .where(
            TestResult.id == result_id,
            TestResult.status == ResultStatus.PENDING_REVIEW,
        )
        .values(
            score=final_score,
            percentage=calculate_percentage(final_score, result_row.total),
            passed=final_score >= passing_score,
            status=ResultStatus.COMPLETED,
        )
        .execution_options(synchronize_session=False)
    )
    return outcome.rowcount == 1


async def submit_batch(
    db: AsyncSession, verdicts: Sequence[Verdict], hub: EventHub
) -> VerdictBatchResponse:
    """
    Apply a batch of verdicts and finalize the result if none remain pending.

    Everything between resolving the result and the finalizing update runs in
    one transaction. The result-reviewed event is published after commit and
    carries the finalized summary with its protocol.

    Args:
        db: Database session
        verdicts: Non-empty list of {answer_id, is_correct}
        hub: Event hub notified on finalization

    Returns:
        VerdictBatchResponse; is_finalized is True only for the batch that
        completed the result

    Raises:
        InvalidInputError: If the batch is empty or spans several results
        NotFoundError: If an answer id does not exist
        InternalError: If the store fails; nothing is applied
    """
    if not verdicts:
        raise InvalidInputError(ErrorMessages.EMPTY_VERDICT_BATCH)

    async with atomic(db, "apply review verdicts"):
        result_id = await _resolve_result_id(db, verdicts)
        applied = await _apply_verdicts(db, result_id, verdicts)
        remaining = await count_pending(db, result_id)
        is_finalized = remaining == 0 and await _finalize(db, result_id)

    logger.info(
        f"Applied {applied} of {len(verdicts)} verdict(s) to result {result_id}; "
        f"{remaining} pending",
        extra={"result_id": result_id},
    )

    if is_finalized:
        protocol = await build_protocol(db, result_id)
        logger.info(
            f"Finalized result {result_id}: score={protocol.summary.score}/"
            f"{protocol.summary.total} passed={protocol.summary.passed}",
            extra={"result_id": result_id},
        )
        hub.publish(RESULT_REVIEWED, protocol_event_payload(result_id, protocol))

    return VerdictBatchResponse(success=True, is_finalized=is_finalized)
