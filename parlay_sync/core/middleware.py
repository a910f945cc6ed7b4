"""
Request correlation middleware.

Reads ``X-Correlation-ID`` (or generates one), exposes it on
``request.state.correlation_id``, binds it to the logging context for the
duration of the request and echoes it back with the elapsed time.
"""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from parlay_sync.core.logging import set_correlation_id, clear_correlation_id, get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
ELAPSED_HEADER = "X-Elapsed-Ms"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Attach a correlation ID to every request.

    Access in endpoints:
        correlation_id = request.state.correlation_id
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        token = set_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            elapsed_ms = int((time.perf_counter() - started) * 1000)

            response.headers[CORRELATION_HEADER] = correlation_id
            response.headers[ELAPSED_HEADER] = str(elapsed_ms)

            logger.debug(
                f"Request completed: {request.method} {request.url.path}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "elapsed_ms": elapsed_ms,
                },
            )
            return response
        finally:
            clear_correlation_id(token)
