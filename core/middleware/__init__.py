"""
Core middleware package.

Provides request tracing and rate limiting middleware for the application.
"""

from core.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware, get_client_ip
from core.middleware.request_context import REQUEST_ID_HEADER, RequestContextMiddleware

__all__ = [
    "RateLimitConfig",
    "RateLimitMiddleware",
    "get_client_ip",
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
]
