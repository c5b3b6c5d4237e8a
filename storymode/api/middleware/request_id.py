"""
Request ID middleware for request correlation.

Accepts X-Request-ID from the client or mints one, exposes it on
request.state and the response, and binds it to the logging context.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from storymode.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000
# Content generation legitimately takes seconds; warn only past this
SLOW_GENERATION_MS = 30_000


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign a correlation id to every request and flag slow ones."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id

            path = request.url.path
            threshold = SLOW_GENERATION_MS if "/story/segments" in path else SLOW_REQUEST_MS
            if duration_ms > threshold:
                logger.warning(
                    "Slow request",
                    extra={
                        "path": path,
                        "method": request.method,
                        "duration_ms": round(duration_ms, 1),
                    },
                )
            return response
        finally:
            request_id_var.reset(token)
