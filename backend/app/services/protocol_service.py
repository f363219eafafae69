"""
Protocol builder: the per-question breakdown of a result.

Read-only. Answers are joined to their questions with an outer join, so an
answer whose question has since been deleted (question_id NULL) still yields
a line with placeholder text instead of failing.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.datetime_utils import ensure_timezone_aware
from app.core.error_responses import ErrorMessages
from app.core.exceptions import NotFoundError
from app.models import (
    Question,
    QuestionKind,
    ReviewStatus,
    Test,
    TestAnswer,
    TestResult,
    TestSettings,
)
from app.models.types import MatchAnswer, SelectAnswer, TextAnswer
from app.schemas.protocol import ProtocolEntry, ProtocolResponse, ResultSummary

logger = logging.getLogger(__name__)

QUESTION_REMOVED = "[Question removed]"
OPTION_REMOVED = "[option removed]"
NO_ANSWER_SELECTED = "(no answer selected)"
REVIEWED_MANUALLY = "[Reviewed manually]"
AWAITING_REVIEW = "[Awaiting review]"


def _entry_kind(answer: TestAnswer, question: Optional[Question]) -> QuestionKind:
    if question is not None:
        return question.kind
    return QuestionKind(answer.user_answer.kind)


def build_entry(answer: TestAnswer, question: Optional[Question]) -> ProtocolEntry:
    """Format one answer (and its question, if it still exists) as a protocol line."""
    payload = answer.user_answer
    kind = _entry_kind(answer, question)

    chosen_text = NO_ANSWER_SELECTED
    correct_text = ""
    match_prompts: List[str] = []
    correct_match: List[str] = []

    if isinstance(payload, TextAnswer):
        chosen_text = payload.text
        correct_text = (
            AWAITING_REVIEW
            if answer.review_status == ReviewStatus.PENDING
            else REVIEWED_MANUALLY
        )
    elif isinstance(payload, MatchAnswer):
        chosen_text = "; ".join(payload.values) or NO_ANSWER_SELECTED
        if question is not None:
            match_prompts = list(question.match_prompts or [])
            correct_match = list(question.match_answers or [])
            correct_text = "; ".join(correct_match)
    elif isinstance(payload, SelectAnswer):
        options = question.options if question is not None else []
        text_by_id = {option.id: option.text for option in options}
        chosen_text = (
            ", ".join(text_by_id.get(oid, OPTION_REMOVED) for oid in payload.option_ids)
            or NO_ANSWER_SELECTED
        )
        if question is not None:
            correct_keys = {str(k) for k in (question.correct_option_keys or [])}
            correct_text = ", ".join(
                option.text for option in options if option.key in correct_keys
            )

    return ProtocolEntry(
        question_id=answer.question_id,
        question_text=question.text if question is not None else QUESTION_REMOVED,
        type=kind,
        chosen_answer_text=chosen_text,
        correct_answer_text=correct_text,
        is_correct=bool(answer.is_correct),
        explanation=question.explanation if question is not None else None,
        review_status=answer.review_status,
        match_prompts=match_prompts,
        chosen_answers_match=payload.display_values(),
        correct_answers_match=correct_match,
    )


async def build_protocol(db: AsyncSession, result_id: int) -> ProtocolResponse:
    """
    Build the summary and per-question protocol of a result.

    Rows are always re-read from the store (populate_existing), so a protocol
    built right after a bulk UPDATE reflects the committed values.

    Args:
        db: Database session
        result_id: Result to describe

    Returns:
        ProtocolResponse with the summary and entries in answer order

    Raises:
        NotFoundError: If the result does not exist
    """
    summary_row = (
        await db.execute(
            select(TestResult, Test.name, TestSettings.passing_score)
            .outerjoin(Test, Test.id == TestResult.test_id)
            .outerjoin(TestSettings, TestSettings.test_id == TestResult.test_id)
            .where(TestResult.id == result_id)
            .execution_options(populate_existing=True)
        )
    ).first()
    if summary_row is None:
        raise NotFoundError(ErrorMessages.result_not_found(result_id))
    result, test_name, passing_score = summary_row

    answer_rows = (
        await db.execute(
            select(TestAnswer, Question)
            .outerjoin(Question, Question.id == TestAnswer.question_id)
            .options(selectinload(Question.options))
            .where(TestAnswer.result_id == result_id)
            .order_by(TestAnswer.id)
            .execution_options(populate_existing=True)
        )
    ).all()

    summary = ResultSummary(
        test_id=result.test_id,
        test_name=test_name,
        respondent=result.respondent,
        score=result.score,
        total=result.total,
        percentage=result.percentage,
        date=ensure_timezone_aware(result.date),
        status=result.status,
        passed=bool(result.passed),
        passing_score=passing_score,
    )
    protocol = [build_entry(answer, question) for answer, question in answer_rows]
    return ProtocolResponse(summary=summary, protocol=protocol)


def protocol_event_payload(result_id: int, protocol: ProtocolResponse) -> dict:
    """Payload of a result-reviewed event: the summary flattened with its protocol."""
    final_data = protocol.summary.model_dump(by_alias=True, mode="json")
    final_data["protocolData"] = [
        entry.model_dump(by_alias=True, mode="json") for entry in protocol.protocol
    ]
    return {"resultId": result_id, "finalResultData": final_data}
