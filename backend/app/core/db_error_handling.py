"""
Database transaction boundary.

Every multi-statement write in the service layer runs inside atomic(), which
centralizes the pattern of:
1. Committing once when the block finishes
2. Rolling the session back on any error
3. Logging store failures with context and surfacing them as domain errors

Usage:
    from app.core.db_error_handling import atomic

    async with atomic(db, "submit test"):
        db.add(result)
        await db.flush()
        db.add_all(answers)

The session's autobegun transaction is what gets committed, so reads made
before entering the block belong to the same transaction.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error_responses import ErrorMessages
from app.core.exceptions import ConflictError, InternalError, QuizError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(
    db: AsyncSession, operation_name: str
) -> AsyncGenerator[AsyncSession, None]:
    """Run a block as one transaction: commit on success, roll back on error.

    Args:
        db: The async session the block writes through.
        operation_name: Human-readable name used in logs and error messages
            (e.g., "submit test", "apply review verdicts").

    Yields:
        The same session, for convenience.

    Raises:
        QuizError: Domain errors raised inside the block, after rollback.
        ConflictError: When the store reports a constraint violation.
        InternalError: On any other SQLAlchemy failure.
    """
    try:
        yield db
        await db.commit()
    except QuizError:
        await db.rollback()
        raise
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Constraint violation during {operation_name}: {e.orig}")
        raise ConflictError(ErrorMessages.CONSTRAINT_VIOLATION) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Database error during {operation_name}: {e}", exc_info=True)
        raise InternalError(
            ErrorMessages.database_operation_failed(operation_name),
            operation_name=operation_name,
        ) from e
    except Exception:
        await db.rollback()
        raise
