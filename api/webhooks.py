"""
Webhook Router.

Receives third-party webhooks and exposes stored records.

Security:
    Admission runs application-wide before these handlers:
    - X-API-Key must match the configured API key (401 otherwise)
    - X-Webhook-Signature must be the HMAC-SHA256 hex digest of the request
      body for POST (403 otherwise)

Idempotency:
    POST requests carrying X-Idempotency-Key are answered from the
    idempotency cache when the key was seen within the retention window.
    IngestionService additionally dedups by key at the database.

Endpoints:
    POST /webhooks        - Receive a webhook
    GET  /webhooks        - List stored webhooks (paginated, newest first)
    GET  /webhooks/{id}   - Get one stored webhook
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Header, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from core.dependencies import IdempotencyCacheDep, IngestionServiceDep
from core.error_handlers import format_validation_errors
from core.exceptions import ValidationFailure
from core.idempotency import IDEMPOTENCY_HEADER
from core.schemas.webhook import (
    CreateWebhookRequest,
    CreateWebhookResponse,
    ErrorResponse,
    PaginatedWebhooks,
    WebhookDetail,
    WebhookQuery,
)
from core.security.gates import SIGNATURE_HEADER

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

MESSAGE_RECEIVED = "Webhook received"
MESSAGE_DUPLICATE = "Webhook already processed (idempotent)"

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid payload"},
    401: {"model": ErrorResponse, "description": "Invalid or missing API key"},
}


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "",
    name="create_webhook",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateWebhookResponse,
    responses={
        **_ERROR_RESPONSES,
        403: {"model": ErrorResponse, "description": "Invalid or missing webhook signature"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": CreateWebhookRequest.model_json_schema()}},
        }
    },
)
async def create_webhook(
    request: Request,
    service: IngestionServiceDep,
    cache: IdempotencyCacheDep,
    signature: Annotated[Optional[str], Header(alias=SIGNATURE_HEADER)] = None,
    idempotency_key: Annotated[Optional[str], Header(alias=IDEMPOTENCY_HEADER)] = None,
) -> JSONResponse:
    """
    Receive a new webhook.

    The body is validated here, after admission, from the same raw bytes
    the signature was checked against.
    """
    use_cache = cache.applies_to(request.method, idempotency_key)
    if use_cache:
        cached = cache.lookup(idempotency_key)
        if cached is not None:
            logger.info(f"Returning cached response for idempotency key: {idempotency_key}")
            snapshot = cached.response_snapshot
            return JSONResponse(status_code=snapshot.status_code, content=snapshot.body)

    payload = _parse_body(await request.body())

    result = await service.create(payload, signature, idempotency_key)

    body = CreateWebhookResponse(
        id=result.record.id,
        message=MESSAGE_RECEIVED if result.is_new else MESSAGE_DUPLICATE,
    ).model_dump(by_alias=True)

    if use_cache:
        # First stored response wins if a concurrent request got there first
        stored = cache.store(idempotency_key, status.HTTP_201_CREATED, body)
        body = stored.response_snapshot.body

    return JSONResponse(status_code=status.HTTP_201_CREATED, content=body)


@router.get(
    "",
    name="list_webhooks",
    response_model=PaginatedWebhooks,
    responses=_ERROR_RESPONSES,
)
async def list_webhooks(
    query: Annotated[WebhookQuery, Query()],
    service: IngestionServiceDep,
) -> PaginatedWebhooks:
    """List webhooks with pagination, newest first."""
    return await service.find_all(query)


@router.get(
    "/{webhook_id}",
    name="get_webhook",
    response_model=WebhookDetail,
    responses={
        **_ERROR_RESPONSES,
        404: {"model": ErrorResponse, "description": "Webhook not found"},
    },
)
async def get_webhook(webhook_id: UUID, service: IngestionServiceDep) -> WebhookDetail:
    """Get a webhook by ID."""
    record = await service.find_one(str(webhook_id))
    return WebhookDetail.model_validate(record)


# =============================================================================
# Helpers
# =============================================================================


def _parse_body(raw_body: bytes) -> CreateWebhookRequest:
    """
    Validate the raw JSON body.

    Raises:
        ValidationFailure: Malformed JSON or field-level validation errors.
    """
    try:
        return CreateWebhookRequest.model_validate_json(raw_body)
    except ValidationError as e:
        raise ValidationFailure(format_validation_errors(e.errors())) from e
