"""
Result admin endpoints: listing, protocols and manual review.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import get_db
from app.schemas.common import DeleteResponse, IntIdListRequest
from app.schemas.protocol import ProtocolResponse
from app.schemas.results import ResultPage, SortColumn, SortOrder
from app.schemas.review import (
    PendingReviewItem,
    VerdictBatchRequest,
    VerdictBatchResponse,
)
from app.services import result_service, review_service
from app.services.event_hub import EventHub, get_event_hub
from app.services.protocol_service import build_protocol

from ._dependencies import verify_admin_token

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("/tests/{test_id}/results", response_model=ResultPage)
async def list_results(
    test_id: str,
    search: str = Query("", max_length=255),
    sort: SortColumn = Query("date"),
    order: SortOrder = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """
    Paginated results of a test.

    Requires X-Admin-Token header.

    Example:
        ```
        curl "http://localhost:8000/api/admin/tests/<id>/results?search=ivan&sort=score&order=asc" \
          -H "X-Admin-Token: token"
        ```
    """
    return await result_service.list_results(
        db, test_id, search=search, sort=sort, order=order, page=page, limit=limit
    )


@router.post("/results/delete-bulk", response_model=DeleteResponse)
async def delete_results(
    body: IntIdListRequest,
    db: AsyncSession = Depends(get_db),
    hub: EventHub = Depends(get_event_hub),
):
    deleted = await result_service.delete_results(db, body.ids, hub)
    return DeleteResponse(deleted=deleted)


@router.get("/results/{result_id}/protocol", response_model=ProtocolResponse)
async def get_protocol(result_id: int, db: AsyncSession = Depends(get_db)):
    """Summary and per-question protocol of a result."""
    return await build_protocol(db, result_id)


@router.get("/results/{result_id}/review", response_model=List[PendingReviewItem])
async def get_pending_review(result_id: int, db: AsyncSession = Depends(get_db)):
    """Free-text answers of a result that still await a verdict."""
    return await review_service.get_pending_reviews(db, result_id)


@router.post("/review/submit-batch", response_model=VerdictBatchResponse)
async def submit_review_batch(
    body: VerdictBatchRequest,
    db: AsyncSession = Depends(get_db),
    hub: EventHub = Depends(get_event_hub),
):
    """
    Apply verdicts to pending answers of one result.

    isFinalized is true only for the batch that judged the result's last
    pending answer.
    """
    return await review_service.submit_batch(db, body.verdicts, hub)
