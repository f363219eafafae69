"""
Admin API endpoints.

All endpoints require authentication via the X-Admin-Token header.

Submodules:
    - tests: Test management and per-test settings
    - questions: Question store management
    - results: Result listing, protocols and manual review
"""
from fastapi import APIRouter

from . import questions, results, tests

# Create the main admin router
router = APIRouter()

router.include_router(
    tests.router,
    tags=["Admin - Tests"],
)

router.include_router(
    questions.router,
    tags=["Admin - Questions"],
)

router.include_router(
    results.router,
    tags=["Admin - Results"],
)
