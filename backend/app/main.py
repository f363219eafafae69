"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.error_responses import ErrorMessages
from app.core.exceptions import InternalError, QuizError
from app.core.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware
from app.models import Base, async_engine

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    - On startup: Creates missing tables when DB_AUTO_CREATE is enabled
    - On shutdown: Disposes the engine's connection pool
    """
    if settings.DB_AUTO_CREATE:
        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured (DB_AUTO_CREATE=true)")

    if not settings.ADMIN_TOKEN:
        logger.warning("ADMIN_TOKEN is not set; admin endpoints will return 500")

    yield

    await async_engine.dispose()
    logger.info("Application shut down, database connections closed")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Liveness and database readiness checks",
    },
    {
        "name": "public",
        "description": "Test catalogue, attempt start, question sampling and submission",
    },
    {
        "name": "events",
        "description": "Server-Sent Events stream of result and catalogue changes",
    },
    {
        "name": "Admin - Tests",
        "description": "Test management and per-test settings (X-Admin-Token)",
    },
    {
        "name": "Admin - Questions",
        "description": "Question store management (X-Admin-Token)",
    },
    {
        "name": "Admin - Results",
        "description": "Result listing, protocols and manual review (X-Admin-Token)",
    },
]


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**QuizDesk API** - timed quizzes with server-side scoring.\n\n"
            "This API provides:\n"
            "* A public catalogue of tests and timed attempts\n"
            "* Scoring of checkbox and matching questions on submission\n"
            "* Manual review of free-text answers\n"
            "* A live event stream for administrator dashboards\n\n"
            "## Authentication\n\n"
            "Admin endpoints require the `X-Admin-Token` header."
        ),
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Attempt start times live in the signed session cookie
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        same_site="lax",
        https_only=settings.ENV == "production",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-Token", "X-Request-ID"],
    )

    # Added last so it wraps everything and logs every request
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.exception_handler(QuizError)
    async def quiz_error_handler(request: Request, exc: QuizError):
        """
        Map domain failures raised by the service layer onto responses.
        """
        content = {"detail": exc.message, "error_code": exc.error_code}
        if isinstance(exc, InternalError):
            error_id = str(uuid.uuid4())
            logger.error(
                f"Internal error during {exc.operation_name} [error_id={error_id}]",
                extra={"error_id": error_id},
            )
            content = {
                "detail": ErrorMessages.INTERNAL_ERROR,
                "error_code": exc.error_code,
                "error_id": error_id,
            }
        elif exc.status_code >= 400:
            logger.info(
                f"{exc.error_code} on {request.method} {request.url.path}: "
                f"{exc.message}"
            )
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]
        logger.info(
            f"Validation failed on {request.method} {request.url.path}: {errors}"
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Generates a unique error_id (UUID) for each exception so a response
        can be matched to its log line. Internal details are never returned.
        """
        error_id = str(uuid.uuid4())
        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": ErrorMessages.INTERNAL_ERROR,
                "error_id": error_id,
            },
        )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": f"{settings.API_PREFIX}/docs",
        }

    return app


app = create_application()
