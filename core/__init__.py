"""Core module - Application kernel components."""
from core.app_context import AppContext, ROUTE_POLICIES
from core.idempotency import IdempotencyCache
from core.logging_config import setup_logging
from core.server import create_base_app
from core import database

# Configuration
from core.providers import (
    ConfigurationProvider,
    get_configuration_provider,
    reset_configuration_provider,
)

# FastAPI Dependencies (for use with Annotated[..., Depends(...)])
from core.dependencies import (
    ContextDep,
    DbSessionDep,
    IdempotencyCacheDep,
    IngestionServiceDep,
    WebhookRepositoryDep,
    enforce_admission,
    get_app_context,
    get_db,
    get_idempotency_cache,
    get_ingestion_service,
    get_webhook_repository,
)

__all__ = [
    "AppContext", "ROUTE_POLICIES", "IdempotencyCache",
    "create_base_app", "setup_logging", "database",
    # Configuration
    "ConfigurationProvider", "get_configuration_provider", "reset_configuration_provider",
    # FastAPI Dependencies
    "ContextDep", "DbSessionDep", "IdempotencyCacheDep", "IngestionServiceDep",
    "WebhookRepositoryDep", "enforce_admission",
    "get_app_context", "get_db", "get_idempotency_cache",
    "get_ingestion_service", "get_webhook_repository",
]
