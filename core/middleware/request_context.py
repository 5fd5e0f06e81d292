"""
Request Context Middleware.

Assigns every request a trace identifier and logs one line per request
and per response against it.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("http")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request ID propagation and access logging.

    - Reuses the caller's X-Request-ID, or generates a UUID4
    - Exposes it as ``request.state.request_id``
    - Echoes it in the X-Request-ID response header
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            f"request_id={request_id} -> {request.method} {request.url.path} "
            f"user_agent={request.headers.get('user-agent', 'unknown')}"
        )

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"request_id={request_id} <- {request.method} {request.url.path} "
                f"500 {duration_ms:.1f}ms (unhandled)"
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            f"request_id={request_id} <- {request.method} {request.url.path} "
            f"{response.status_code} {duration_ms:.1f}ms"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
