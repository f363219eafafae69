"""
Result queries and maintenance: pass lookups, admin listing and bulk delete.
"""
import logging
import math
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_error_handling import atomic
from app.core.error_responses import ErrorMessages
from app.core.validators import StringSanitizer
from app.core.exceptions import InvalidInputError, NotFoundError
from app.models import Test, TestResult
from app.schemas.protocol import LastResultResponse
from app.schemas.results import ResultPage, ResultRow
from app.services.event_hub import TESTS_UPDATED, EventHub
from app.services.protocol_service import build_protocol

logger = logging.getLogger(__name__)

# Whitelist mapping of sortable API columns onto model columns
SORT_COLUMNS = {
    "id": TestResult.id,
    "respondent": TestResult.respondent,
    "score": TestResult.score,
    "percentage": TestResult.percentage,
    "date": TestResult.date,
    "status": TestResult.status,
}
DEFAULT_SORT = "date"
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def same_respondent(respondent: str):
    """Respondent match on the stored key (sanitized, casefolded)."""
    return TestResult.respondent_key == StringSanitizer.respondent_key(respondent)


async def find_last_passed_result_id(
    db: AsyncSession, test_id: str, respondent: str
) -> Optional[int]:
    """
    Id of the respondent's most recent passed result for a test, if any.

    This is a plain read: two concurrent submissions under the same name can
    both see "not passed yet".
    """
    result = await db.execute(
        select(TestResult.id)
        .where(
            TestResult.test_id == test_id,
            same_respondent(respondent),
            TestResult.passed.is_(True),
        )
        .order_by(TestResult.date.desc(), TestResult.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_last_passed_protocol(
    db: AsyncSession, test_id: Optional[str], respondent: Optional[str]
) -> LastResultResponse:
    """
    Summary and protocol of the respondent's latest passed result.

    Raises:
        InvalidInputError: If test_id or respondent is missing
        NotFoundError: If no passed result exists
    """
    if not test_id or not respondent or not respondent.strip():
        raise InvalidInputError(ErrorMessages.LAST_RESULT_PARAMS_REQUIRED)

    result_id = await find_last_passed_result_id(db, test_id, respondent)
    if result_id is None:
        raise NotFoundError(ErrorMessages.NO_PASSED_RESULT)

    protocol = await build_protocol(db, result_id)
    return LastResultResponse(
        **protocol.summary.model_dump(),
        result_id=result_id,
        protocol_data=protocol.protocol,
    )


async def list_results(
    db: AsyncSession,
    test_id: str,
    search: str = "",
    sort: str = DEFAULT_SORT,
    order: str = "desc",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> ResultPage:
    """
    Paginated results of one test.

    Args:
        db: Database session
        test_id: Test whose results are listed
        search: Case-insensitive substring of the respondent name
        sort: One of SORT_COLUMNS; anything else falls back to date
        order: "asc" or "desc"
        page: 1-based page number
        limit: Page size, clamped to MAX_PAGE_SIZE

    Raises:
        NotFoundError: If the test does not exist
    """
    if await db.get(Test, test_id) is None:
        raise NotFoundError(ErrorMessages.test_not_found(test_id))

    page = max(1, page)
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    sort_column = SORT_COLUMNS.get(sort, SORT_COLUMNS[DEFAULT_SORT])
    ordering = sort_column.asc() if order.lower() == "asc" else sort_column.desc()

    filters = [TestResult.test_id == test_id]
    if search:
        filters.append(
            TestResult.respondent_key.contains(
                StringSanitizer.respondent_key(search), autoescape=True
            )
        )

    total_results = (
        await db.execute(select(func.count(TestResult.id)).where(*filters))
    ).scalar_one()

    rows = (
        await db.execute(
            select(TestResult)
            .where(*filters)
            .order_by(ordering, TestResult.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    ).scalars()

    return ResultPage(
        results=[ResultRow.model_validate(row) for row in rows],
        total_results=total_results,
        total_pages=max(1, math.ceil(total_results / limit)),
        current_page=page,
    )


async def delete_results(db: AsyncSession, ids: List[int], hub: EventHub) -> int:
    """
    Delete results by id; their answers go with them (cascade).

    Returns:
        Number of results removed
    """
    if not ids:
        raise InvalidInputError(ErrorMessages.EMPTY_ID_LIST)

    async with atomic(db, "delete results"):
        outcome = await db.execute(delete(TestResult).where(TestResult.id.in_(ids)))
    deleted = outcome.rowcount or 0

    logger.info(f"Deleted {deleted} result(s)")
    hub.publish(TESTS_UPDATED, {"action": "results_deleted", "ids": ids})
    return deleted
