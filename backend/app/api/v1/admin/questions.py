"""
Question store admin endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import get_db
from app.schemas.common import DeleteResponse, IdListRequest
from app.schemas.questions import AdminQuestionOut, QuestionSave
from app.services import question_service

from ._dependencies import verify_admin_token

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("/tests/{test_id}/questions", response_model=List[AdminQuestionOut])
async def list_questions(test_id: str, db: AsyncSession = Depends(get_db)):
    """List a test's questions with options and canonical answers."""
    return await question_service.list_questions(db, test_id)


@router.post(
    "/tests/{test_id}/questions",
    response_model=AdminQuestionOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_question(
    test_id: str, body: QuestionSave, db: AsyncSession = Depends(get_db)
):
    return await question_service.create_question(db, test_id, body)


@router.put("/questions/{question_id}", response_model=AdminQuestionOut)
async def update_question(
    question_id: str, body: QuestionSave, db: AsyncSession = Depends(get_db)
):
    """
    Replace a question's text, kind, canonical answer and options.

    Requires X-Admin-Token header.
    """
    return await question_service.update_question(db, question_id, body)


@router.post("/questions/delete-bulk", response_model=DeleteResponse)
async def delete_questions(body: IdListRequest, db: AsyncSession = Depends(get_db)):
    """
    Delete questions by id.

    Answers given to them stay in their results; protocols show the
    question as removed.
    """
    deleted = await question_service.delete_questions(db, body.ids)
    return DeleteResponse(deleted=deleted)
