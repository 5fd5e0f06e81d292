"""
FastAPI Application Factory.

Creates and configures the FastAPI application with the admission
pipeline, middleware, error handlers, health routes and webhook API.
"""

import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from core.app_context import AppContext
from core.database.session import get_session_factory, ping_database
from core.dependencies import enforce_admission
from core.error_handlers import register_exception_handlers
from core.exceptions import ServiceUnavailableError
from core.middleware import RateLimitConfig, RateLimitMiddleware, RequestContextMiddleware

_logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def create_base_app(
    context: AppContext,
    title: str = "Webhook Receiver Service",
    description: str = "Authenticated, signed and idempotent webhook ingestion API",
    version: str = "1.0.0",
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        context: Application context holding config, gates and cache.
        title: API title for OpenAPI documentation.
        description: API description for OpenAPI documentation.
        version: API version string.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=title,
        description=description,
        version=version,
        dependencies=[Depends(enforce_admission)],
    )

    # Store references in app state for access in route handlers
    app.state.context = context

    config = context.config

    allowed_origins = _get_allowed_origins(
        config.get("server.base_url", ""),
        config.get("app.debug", False),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "X-API-Key",
            "X-Webhook-Signature",
            "X-Idempotency-Key",
            "X-Request-ID",
        ],
        expose_headers=["X-Request-ID", "X-RateLimit-Remaining"],
    )

    app.add_middleware(
        RateLimitMiddleware,
        config=RateLimitConfig(
            limit=config.get("throttle.limit", 100),
            window_seconds=config.get("throttle.ttl", 60),
        ),
    )

    # Add security headers middleware
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Outermost: request id must exist before any other middleware responds
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    _register_core_routes(app)
    _register_api_routers(app)

    return app


def _get_allowed_origins(base_url: str, is_debug: bool) -> list[str]:
    """CORS origins: BASE_URL, plus localhost in debug mode. Never "*"."""
    allowed_origins: list[str] = []

    if base_url:
        allowed_origins.append(base_url)

    if is_debug:
        allowed_origins.extend([
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ])

    if allowed_origins:
        _logger.info(f"CORS configured with {len(allowed_origins)} origin(s): {allowed_origins}")
    else:
        _logger.warning(
            "BASE_URL not configured. CORS will reject all cross-origin requests."
        )

    return allowed_origins


def _register_core_routes(app: FastAPI) -> None:
    """Register public health check routes."""
    health_router = APIRouter(prefix="/health", tags=["health"])

    @health_router.get("", name="health_check")
    async def health_check() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    @health_router.get("/ready", name="readiness_check")
    async def readiness_check() -> dict[str, str]:
        """Readiness check (includes database)."""
        try:
            async with get_session_factory()() as session:
                await ping_database(session)
        except Exception as e:
            _logger.error(f"Readiness check failed: database unreachable: {e}")
            raise ServiceUnavailableError("Database is not reachable") from e
        return {"status": "ok", "database": "up"}

    app.include_router(health_router, prefix=API_PREFIX)


def _register_api_routers(app: FastAPI) -> None:
    """Register versioned API routers."""
    from api.webhooks import router as webhooks_router

    app.include_router(webhooks_router, prefix=f"{API_PREFIX}/v1")
