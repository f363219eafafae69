"""
Test management admin endpoints: tests and their settings.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import get_db
from app.schemas.common import SuccessResponse
from app.schemas.tests import (
    AdminTestOut,
    TestCreate,
    TestRename,
    TestSettingsIn,
    TestSettingsOut,
    TestStatusUpdate,
)
from app.services import test_service
from app.services.event_hub import EventHub, get_event_hub

from ._dependencies import verify_admin_token

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("/tests", response_model=List[AdminTestOut])
async def list_tests(db: AsyncSession = Depends(get_db)):
    """
    List all tests, newest first.

    hasPendingReviews is set when any result of the test awaits review.

    Requires X-Admin-Token header.
    """
    return await test_service.list_tests(db)


@router.post(
    "/tests", response_model=AdminTestOut, status_code=status.HTTP_201_CREATED
)
async def create_test(
    body: TestCreate,
    db: AsyncSession = Depends(get_db),
    hub: EventHub = Depends(get_event_hub),
):
    """Create an unpublished test with default settings."""
    return await test_service.create_test(db, body.name, hub)


@router.put("/tests/{test_id}/rename", response_model=AdminTestOut)
async def rename_test(
    test_id: str,
    body: TestRename,
    db: AsyncSession = Depends(get_db),
    hub: EventHub = Depends(get_event_hub),
):
    return await test_service.rename_test(db, test_id, body.name, hub)


@router.put("/tests/{test_id}/status", response_model=AdminTestOut)
async def update_test_status(
    test_id: str,
    body: TestStatusUpdate,
    db: AsyncSession = Depends(get_db),
    hub: EventHub = Depends(get_event_hub),
):
    """Publish (isActive=true) or unpublish a test."""
    return await test_service.set_test_status(db, test_id, body.is_active, hub)


@router.delete("/tests/{test_id}", response_model=SuccessResponse)
async def delete_test(
    test_id: str,
    db: AsyncSession = Depends(get_db),
    hub: EventHub = Depends(get_event_hub),
):
    """Delete a test together with its settings, questions and results."""
    await test_service.delete_test(db, test_id, hub)
    return SuccessResponse()


@router.get("/tests/{test_id}/settings", response_model=TestSettingsOut)
async def get_test_settings(test_id: str, db: AsyncSession = Depends(get_db)):
    return await test_service.get_settings(db, test_id)


@router.post("/tests/{test_id}/settings", response_model=TestSettingsOut)
async def save_test_settings(
    test_id: str,
    body: TestSettingsIn,
    db: AsyncSession = Depends(get_db),
    hub: EventHub = Depends(get_event_hub),
):
    """
    Save duration (1-180 minutes), pass mark (1-100) and sample size (1-100).

    Requires X-Admin-Token header.
    """
    return await test_service.save_settings(db, test_id, body, hub)
