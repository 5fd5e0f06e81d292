"""
Webhook Schemas.

Pydantic models for webhook request validation and response shaping.
Wire field names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelSchema(BaseModel):
    """Base schema serialized with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CreateWebhookRequest(BaseModel):
    """Inbound webhook body."""

    model_config = ConfigDict(extra="forbid")

    source: str = Field(
        ..., min_length=1, max_length=100,
        description="Source of the webhook (e.g., stripe, github, shopify)",
        examples=["stripe"],
    )
    event: str = Field(
        ..., min_length=1, max_length=100,
        description="Event type (e.g., payment.completed, issue.created)",
        examples=["payment.completed"],
    )
    payload: dict[str, Any] = Field(
        ..., description="Webhook payload data",
        examples=[{"orderId": "12345", "amount": 100, "currency": "USD"}],
    )


class CreateWebhookResponse(CamelSchema):
    """Response after a webhook is accepted."""

    id: str = Field(..., description="Webhook ID (UUID)")
    message: str = Field(..., description="Confirmation message")


class WebhookSummary(CamelSchema):
    """Stored webhook as returned by list and detail endpoints."""

    id: str
    source: str
    event: str
    payload: dict[str, Any]
    received_at: datetime
    status: str


class WebhookDetail(WebhookSummary):
    """Single webhook; never exposes signature or idempotency key."""


class PaginationMeta(CamelSchema):
    """Pagination metadata."""

    total: int
    page: int
    limit: int
    total_pages: int


class PaginatedWebhooks(CamelSchema):
    """Page of webhooks, newest first."""

    data: list[WebhookSummary]
    meta: PaginationMeta


class WebhookQuery(BaseModel):
    """List filters and pagination."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    source: Optional[str] = Field(default=None, max_length=100)
    event: Optional[str] = Field(default=None, max_length=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ErrorResponse(CamelSchema):
    """Uniform error body for every failure path."""

    status_code: int
    message: str
    errors: Optional[list[str]] = None
    request_id: str
    timestamp: str
    path: str
