"""
Tests for the get_db() database session dependency.

Verifies rollback behavior when exceptions occur while a session is in use.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from app.models.base import to_async_url


def _session_factory(session):
    """Stand-in for AsyncSessionLocal returning ``session`` as a context manager."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestGetDbRollbackBehavior:
    async def test_rollback_called_on_exception(self):
        session = MagicMock()
        session.rollback = AsyncMock()

        with patch("app.models.base.AsyncSessionLocal", _session_factory(session)):
            from app.models.base import get_db

            gen = get_db()
            db = await gen.__anext__()
            assert db is session

            with pytest.raises(ValueError):
                await gen.athrow(ValueError("Test exception"))

        session.rollback.assert_awaited_once()

    async def test_no_rollback_on_success(self):
        session = MagicMock()
        session.rollback = AsyncMock()

        with patch("app.models.base.AsyncSessionLocal", _session_factory(session)):
            from app.models.base import get_db

            gen = get_db()
            await gen.__anext__()
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        session.rollback.assert_not_awaited()


class TestToAsyncUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("sqlite:///./quizdesk.db", "sqlite+aiosqlite:///./quizdesk.db"),
            ("postgresql://u:p@db/quiz", "postgresql+asyncpg://u:p@db/quiz"),
            ("postgresql+psycopg2://u:p@db/quiz", "postgresql+asyncpg://u:p@db/quiz"),
            ("sqlite+aiosqlite:///x.db", "sqlite+aiosqlite:///x.db"),
        ],
    )
    def test_mapping(self, url, expected):
        assert to_async_url(url) == expected

    def test_unknown_driver_rejected(self):
        with pytest.raises(ValueError):
            to_async_url("mysql://u:p@db/quiz")
