"""
Question store administration.

Questions are saved whole: the row and its options are rewritten in one
transaction. Deleting questions leaves past answers in place with
question_id set to NULL.
"""
import logging
import uuid
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.db_error_handling import atomic
from app.core.error_responses import ErrorMessages
from app.core.exceptions import InvalidInputError, NotFoundError
from app.models import Question, QuestionKind, QuestionOption, Test
from app.schemas.questions import (
    AdminOptionOut,
    AdminQuestionOut,
    OptionIn,
    QuestionSave,
)

logger = logging.getLogger(__name__)


def question_to_admin(question: Question) -> AdminQuestionOut:
    """Convert a Question (options loaded) to its admin representation."""
    return AdminQuestionOut(
        id=question.id,
        test_id=question.test_id,
        text=question.text,
        explanation=question.explanation,
        type=question.kind,
        options=[
            AdminOptionOut(id=option.id, key=option.key, text=option.text)
            for option in question.options
        ],
        correct=list(question.correct_option_keys or []),
        match_prompts=list(question.match_prompts or []),
        match_answers=list(question.match_answers or []),
    )


def _option_key(option: OptionIn) -> str:
    if option.key:
        return option.key
    if option.id:
        return option.id.rsplit("-", 1)[-1]
    return uuid.uuid4().hex[:8]


def _build_options(question_id: str, data: QuestionSave) -> List[QuestionOption]:
    """Options for a select-kind question; blank ones are skipped."""
    if data.type != QuestionKind.CHECKBOX:
        return []
    options = []
    seen_keys = set()
    for position, option in enumerate(data.options):
        text = option.text.strip()
        if not text:
            continue
        key = _option_key(option)
        if key in seen_keys:
            raise InvalidInputError(f"Duplicate option key: {key}.")
        seen_keys.add(key)
        options.append(
            QuestionOption(
                id=f"{question_id}-{key}",
                question_id=question_id,
                text=text,
                position=position,
            )
        )
    return options


def _check_correct_keys(data: QuestionSave, options: List[QuestionOption]) -> None:
    """
    A checkbox question must name at least one correct key, and only keys of
    options that are actually saved; otherwise no submission could score.
    """
    if data.type != QuestionKind.CHECKBOX:
        return
    if not data.correct:
        raise InvalidInputError(ErrorMessages.NO_CORRECT_OPTION)
    saved_keys = {option.key for option in options}
    unknown = set(data.correct) - saved_keys
    if unknown:
        raise InvalidInputError(ErrorMessages.unknown_correct_keys(unknown))


def _apply(question: Question, data: QuestionSave) -> None:
    question.text = data.text
    question.explanation = data.explanation
    question.kind = data.type
    if data.type == QuestionKind.CHECKBOX:
        question.correct_option_keys = list(dict.fromkeys(data.correct))
        question.match_prompts = []
        question.match_answers = []
    elif data.type == QuestionKind.MATCH:
        question.correct_option_keys = []
        question.match_prompts = list(data.match_prompts)
        question.match_answers = list(data.match_answers)
    else:
        question.correct_option_keys = []
        question.match_prompts = []
        question.match_answers = []


async def _load(db: AsyncSession, question_id: str) -> Question:
    question = (
        await db.execute(
            select(Question)
            .options(selectinload(Question.options))
            .where(Question.id == question_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if question is None:
        raise NotFoundError(ErrorMessages.question_not_found(question_id))
    return question


async def list_questions(db: AsyncSession, test_id: str) -> List[AdminQuestionOut]:
    if await db.get(Test, test_id) is None:
        raise NotFoundError(ErrorMessages.test_not_found(test_id))
    result = await db.execute(
        select(Question)
        .options(selectinload(Question.options))
        .where(Question.test_id == test_id)
        .order_by(Question.text)
    )
    return [question_to_admin(q) for q in result.scalars().all()]


async def create_question(
    db: AsyncSession, test_id: str, data: QuestionSave
) -> AdminQuestionOut:
    """
    Add a question to a test.

    Raises:
        NotFoundError: If the test does not exist
        InvalidInputError: If option keys collide or the correct keys do not
            name saved options
    """
    if await db.get(Test, test_id) is None:
        raise NotFoundError(ErrorMessages.test_not_found(test_id))

    question_id = str(uuid.uuid4())
    options = _build_options(question_id, data)
    _check_correct_keys(data, options)
    async with atomic(db, "create question"):
        question = Question(id=question_id, test_id=test_id)
        _apply(question, data)
        question.options = options
        db.add(question)

    logger.info(f"Created {data.type.value} question {question_id} in test {test_id}")
    return question_to_admin(await _load(db, question_id))


async def update_question(
    db: AsyncSession, question_id: str, data: QuestionSave
) -> AdminQuestionOut:
    """
    Rewrite a question and its options.

    Option ids are derived from their keys, so keeping a key keeps the id
    that earlier answers reference.

    Raises:
        NotFoundError: If the question does not exist
        InvalidInputError: If option keys collide or the correct keys do not
            name saved options
    """
    options = _build_options(question_id, data)
    _check_correct_keys(data, options)
    async with atomic(db, "update question"):
        question = await _load(db, question_id)
        _apply(question, data)
        # Flush the orphaned options first; new ones may reuse their ids
        question.options.clear()
        await db.flush()
        question.options.extend(options)

    logger.info(f"Updated question {question_id}")
    return question_to_admin(await _load(db, question_id))


async def delete_questions(db: AsyncSession, ids: List[str]) -> int:
    """
    Delete questions by id. Answers referencing them survive unlinked.

    Returns:
        Number of questions removed
    """
    if not ids:
        raise InvalidInputError(ErrorMessages.EMPTY_ID_LIST)
    async with atomic(db, "delete questions"):
        outcome = await db.execute(delete(Question).where(Question.id.in_(ids)))
    deleted = outcome.rowcount or 0
    logger.info(f"Deleted {deleted} question(s)")
    return deleted
