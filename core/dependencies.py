"""
FastAPI Dependencies - Dependency Injection for API Routers.

Provides `Annotated[Service, Depends(get_service)]` patterns for
clean dependency injection in FastAPI route handlers.

Usage:
    from core.dependencies import IngestionServiceDep, IdempotencyCacheDep

    @router.post("/webhooks")
    async def create_webhook(service: IngestionServiceDep, cache: IdempotencyCacheDep):
        ...
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.app_context import AppContext
from core.exceptions import AuthenticationFailure, AuthorizationFailure
from core.idempotency import IdempotencyCache
from core.middleware.rate_limit import get_client_ip
from core.services.ingestion import IngestionService
from core.services.webhook_repository import IWebhookRepository, SqlAlchemyWebhookRepository

_security_logger = logging.getLogger("webhook.security")


# =============================================================================
# Context Dependencies
# =============================================================================

def get_app_context(request: Request) -> AppContext:
    """
    FastAPI dependency for the application context.

    Returns:
        AppContext: The context stored on app.state at startup.
    """
    return request.app.state.context


ContextDep = Annotated[AppContext, Depends(get_app_context)]


def get_idempotency_cache(context: ContextDep) -> IdempotencyCache:
    """FastAPI dependency for the shared idempotency cache."""
    return context.idempotency_cache


IdempotencyCacheDep = Annotated[IdempotencyCache, Depends(get_idempotency_cache)]


# =============================================================================
# Request Helpers
# =============================================================================

def get_request_id(request: Request) -> str:
    """Request ID assigned by RequestContextMiddleware, or "unknown"."""
    return getattr(request.state, "request_id", None) or "unknown"


# =============================================================================
# Admission (application-wide)
# =============================================================================

async def enforce_admission(request: Request, context: ContextDep) -> None:
    """
    Run the admission pipeline for every routed request.

    Installed as an application-wide dependency, so it runs after routing
    (route name is known) and before the handler body.

    Raises:
        AuthenticationFailure: Missing or invalid API key (401).
        AuthorizationFailure: Missing or invalid signature (403).
    """
    decision = await context.admission.admit(request)
    if decision.admitted:
        return

    reason = decision.reason
    _security_logger.warning(
        f"Request denied: reason={reason.value}, method={request.method}, "
        f"path={request.url.path}, ip={get_client_ip(request)}, "
        f"request_id={get_request_id(request)}"
    )
    if reason.status_code == 401:
        raise AuthenticationFailure(reason.message)
    raise AuthorizationFailure(reason.message)


# =============================================================================
# Database & Service Dependencies
# =============================================================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session.

    Yields:
        AsyncSession: Database session that auto-closes after request
    """
    from core.database.session import get_db_session
    async for session in get_db_session():
        yield session


DbSessionDep = Annotated[AsyncSession, Depends(get_db)]


def get_webhook_repository(db: DbSessionDep) -> IWebhookRepository:
    """FastAPI dependency for the webhook repository."""
    return SqlAlchemyWebhookRepository(db)


WebhookRepositoryDep = Annotated[IWebhookRepository, Depends(get_webhook_repository)]


def get_ingestion_service(repository: WebhookRepositoryDep) -> IngestionService:
    """FastAPI dependency for the ingestion service."""
    return IngestionService(repository)


IngestionServiceDep = Annotated[IngestionService, Depends(get_ingestion_service)]
