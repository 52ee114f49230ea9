"""FastAPI middleware for observability.

Reads or generates the correlation ID, logs every request and records its
duration.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .correlation_id import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    set_correlation_id,
)
from .logging_config import get_logger
from .metrics import http_request_duration_seconds

logger = get_logger(__name__)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Middleware to propagate X-Correlation-ID and log requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        start_time = time.time()
        logger.info(
            f"{request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {str(e)}",
                extra={
                    "error_type": type(e).__name__,
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True
            )
            raise

        duration = time.time() - start_time
        route = request.scope.get("route")
        http_request_duration_seconds.labels(
            method=request.method,
            route=getattr(route, "path", "unmatched"),
            status_code=str(response.status_code),
        ).observe(duration)

        logger.info(
            f"Request completed: {response.status_code}",
            extra={
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            }
        )

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
