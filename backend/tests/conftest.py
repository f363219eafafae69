"""
Pytest configuration and shared fixtures for testing.
"""
import os

# Settings are read once at import; pin the test values before importing app/
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("DB_AUTO_CREATE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import AsyncGenerator, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.attempt_context import AttemptContext  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Base,
    Question,
    QuestionKind,
    QuestionOption,
    Test,
    TestSettings,
    get_db,
)
from app.models.base import enable_sqlite_foreign_keys  # noqa: E402
from app.services.event_hub import EventHub, get_event_hub  # noqa: E402


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests: tables are managed by the fixtures below."""
    yield


# Neutralize the production lifespan on the singleton app
app.router.lifespan_context = _test_lifespan


# SQLite file next to this module so the path does not depend on the cwd
_TEST_DB = Path(__file__).parent / "test.db"
ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
enable_sqlite_foreign_keys(async_test_engine)

AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh async database session for each test.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def hub() -> EventHub:
    """Isolated event hub; nothing published in one test leaks into another."""
    return EventHub(queue_size=settings.EVENT_SUBSCRIBER_QUEUE_SIZE)


@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession, hub: EventHub
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async test client with database and event hub overrides.

    Each request gets its own session on the test database, as in production.
    The client keeps cookies, so attempt timing survives between calls.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncTestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_hub] = lambda: hub
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"X-Admin-Token": settings.ADMIN_TOKEN}


@pytest.fixture
def attempt() -> AttemptContext:
    """Attempt timing over a plain dict standing in for the session cookie."""
    return AttemptContext({})


@pytest.fixture
def make_test(db_session: AsyncSession):
    """
    Factory for a test with its settings row.

    Usage:
        test = await make_test("Geography", passing_score=2)
    """

    async def _make(
        name: str = "General knowledge",
        *,
        is_active: bool = True,
        duration_minutes: int = 10,
        passing_score: int = 1,
        questions_per_test: int = 10,
    ) -> Test:
        test = Test(id=str(uuid.uuid4()), name=name, is_active=is_active)
        test.settings = TestSettings(
            duration_minutes=duration_minutes,
            passing_score=passing_score,
            questions_per_test=questions_per_test,
        )
        db_session.add(test)
        await db_session.commit()
        return test

    return _make


@pytest.fixture
def make_question(db_session: AsyncSession):
    """
    Factory for a question of any kind.

    Select-kind options are given as {key: text}; their ids become
    "{question_id}-{key}".
    """

    async def _make(
        test: Test,
        text: str = "Pick the right options",
        *,
        kind: QuestionKind = QuestionKind.CHECKBOX,
        options: Optional[Dict[str, str]] = None,
        correct: Optional[List[str]] = None,
        match_prompts: Optional[List[str]] = None,
        match_answers: Optional[List[str]] = None,
        explanation: Optional[str] = None,
    ) -> Question:
        question_id = str(uuid.uuid4())
        question = Question(
            id=question_id,
            test_id=test.id,
            text=text,
            kind=kind,
            explanation=explanation,
            correct_option_keys=list(correct or []),
            match_prompts=list(match_prompts or []),
            match_answers=list(match_answers or []),
        )
        question.options = [
            QuestionOption(
                id=f"{question_id}-{key}",
                question_id=question_id,
                text=option_text,
                position=position,
            )
            for position, (key, option_text) in enumerate((options or {}).items())
        ]
        db_session.add(question)
        await db_session.commit()
        return question

    return _make
