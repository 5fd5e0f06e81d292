"""
Core Schemas Package.

Pydantic models for the webhook API.
"""

from core.schemas.webhook import (
    CreateWebhookRequest,
    CreateWebhookResponse,
    ErrorResponse,
    PaginatedWebhooks,
    PaginationMeta,
    WebhookDetail,
    WebhookQuery,
    WebhookSummary,
)

__all__ = [
    "CreateWebhookRequest",
    "CreateWebhookResponse",
    "ErrorResponse",
    "PaginatedWebhooks",
    "PaginationMeta",
    "WebhookDetail",
    "WebhookQuery",
    "WebhookSummary",
]
