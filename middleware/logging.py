"""Request/response logging with timing information."""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from utils.logging import get_logger

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with status code and duration.

    Request bodies are never logged; transcripts and chat messages can hold
    personal details.
    """

    # Paths to exclude from logging (probe noise)
    EXCLUDE_PATHS = {"/health", "/health/ready", "/health/live"}

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path in self.EXCLUDE_PATHS:
            return await call_next(request)

        method = request.method
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"Request failed: {method} {path} - {type(e).__name__}",
                extra={
                    "event": "request_error",
                    "method": method,
                    "path": path,
                    "duration_seconds": duration,
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            f"Response: {method} {path} - {response.status_code} ({duration:.3f}s)",
            extra={
                "event": "request_complete",
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_seconds": duration,
            },
        )
        return response
