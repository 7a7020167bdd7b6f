"""
FastAPI middleware for request tracing.

Each request gets a short request id (or reuses an incoming X-Request-ID),
which is bound to the logging context together with the method and path
and echoed back on the response.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging import bind_context, clear_context, get_logger


logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Paths polled by orchestrators; logged at debug to keep the stream readable
_PROBE_PATHS = frozenset({"/live", "/ready", "/health"})


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Binds request context for logging and times every request.

    Usage:
        app.add_middleware(RequestTracingMiddleware)
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        path = request.url.path

        bind_context(
            request_id=request_id,
            method=request.method,
            path=path,
        )

        log = logger.debug if path in _PROBE_PATHS else logger.info
        start_time = time.perf_counter()
        log("Request started")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise
        else:
            log(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_context()
