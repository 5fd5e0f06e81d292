"""
Core Services Package.

Provides webhook persistence and ingestion services.
"""

from core.services.ingestion import IngestionResult, IngestionService
from core.services.webhook_repository import IWebhookRepository, SqlAlchemyWebhookRepository

__all__ = [
    # Ingestion
    "IngestionResult",
    "IngestionService",
    # Persistence
    "IWebhookRepository",
    "SqlAlchemyWebhookRepository",
]
