"""
Global Rate Limiting Middleware.

Provides IP-based rate limiting for all API endpoints.
Works behind Cloudflare and reverse proxies by respecting forwarding headers.
"""

import logging
import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from core.error_handlers import error_response

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    """Rate limit configuration."""

    # Requests allowed per client within one window
    limit: int = 100
    window_seconds: int = 60

    # Paths that are never throttled
    exempt_paths: tuple[str, ...] = (
        "/api/health",
    )


@dataclass
class RateLimitState:
    """Per-IP request timestamps within the current window."""

    requests: list[float] = field(default_factory=list)


def get_client_ip(request: Request) -> str:
    """
    Get real client IP, respecting proxy headers.

    Priority:
    1. CF-Connecting-IP (Cloudflare)
    2. X-Forwarded-For (first IP)
    3. X-Real-IP
    4. Direct client host
    """
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip

    xff = request.headers.get("X-Forwarded-For")
    if xff:
        return xff.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    IP-based sliding window rate limiting middleware.

    Features:
    - Respects Cloudflare CF-Connecting-IP header
    - Sliding window per client IP
    - Health endpoints are exempt
    - Periodic cleanup of idle clients
    """

    def __init__(
        self,
        app,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(app)
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._states: dict[str, RateLimitState] = defaultdict(RateLimitState)
        self._lock = threading.Lock()
        self._last_cleanup = clock()
        self._cleanup_interval = 300  # 5 minutes

    def _is_exempt(self, path: str) -> bool:
        return any(path.startswith(p) for p in self.config.exempt_paths)

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop clients with no requests in the current window. Caller holds the lock."""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        self._last_cleanup = now
        cutoff = now - self.config.window_seconds
        idle = [
            ip for ip, state in self._states.items()
            if not any(t > cutoff for t in state.requests)
        ]
        for ip in idle:
            del self._states[ip]

    def _consume(self, ip: str, now: float) -> int | None:
        """
        Record a request for this IP.

        Returns:
            Remaining requests in the window, or None if the limit is exceeded.
        """
        with self._lock:
            self._cleanup_old_entries(now)

            state = self._states[ip]
            cutoff = now - self.config.window_seconds
            state.requests = [t for t in state.requests if t > cutoff]

            if len(state.requests) >= self.config.limit:
                return None

            state.requests.append(now)
            return self.config.limit - len(state.requests)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through rate limiting."""
        if self._is_exempt(request.url.path):
            return await call_next(request)

        client_ip = get_client_ip(request)
        remaining = self._consume(client_ip, self._clock())

        if remaining is None:
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            return error_response(
                request,
                status.HTTP_429_TOO_MANY_REQUESTS,
                "Too many requests. Please slow down.",
                headers={"Retry-After": str(self.config.window_seconds)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
