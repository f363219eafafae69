"""
Request/response logging middleware for tracking API interactions.
"""
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable, Sequence

from app.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log incoming requests and outgoing responses.

    Logs method, path, client host, status code and duration, and binds a
    request id (taken from X-Request-ID or generated) to every log entry
    written while the request is handled. The id is echoed in the response.
    """

    def __init__(self, app, quiet_paths: Sequence[str] = ("/health",)):
        """
        Initialize request logging middleware.

        Args:
            app: ASGI application
            quiet_paths: Path suffixes logged at DEBUG instead of INFO
        """
        super().__init__(app)
        self.quiet_paths = tuple(quiet_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)

        start_time = time.time()
        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"
        success_level = (
            logging.DEBUG if path.endswith(self.quiet_paths) else logging.INFO
        )

        try:
            logger.log(
                success_level,
                "Incoming request",
                extra={"method": method, "path": path, "client_host": client_host},
            )

            response = await call_next(request)

            duration_ms = round((time.time() - start_time) * 1000, 2)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id

            extra_fields = {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "client_host": client_host,
            }
            if status_code >= 500:
                logger.error("Server error response", extra=extra_fields)
            elif status_code >= 400:
                logger.warning("Client error response", extra=extra_fields)
            else:
                logger.log(success_level, "Request completed", extra=extra_fields)

            return response
        finally:
            request_id_context.reset(token)
