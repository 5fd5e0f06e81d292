"""
Webhook Ingestion Service.

Turns an admitted, validated webhook request into exactly one persisted
record per idempotency key, and serves read access to stored records.

Idempotency:
    The persistence layer's unique constraint on idempotency_key is the
    source of truth. A lookup by key short-circuits the common retry case;
    a concurrent insert that loses the race is resolved by re-reading the
    winner's record.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from core.database.base import utc_now
from core.exceptions import DuplicateIdempotencyKeyError, WebhookNotFoundError
from core.models import WebhookRecord, WebhookStatus
from core.schemas.webhook import (
    CreateWebhookRequest,
    PaginatedWebhooks,
    PaginationMeta,
    WebhookQuery,
    WebhookSummary,
)
from core.services.webhook_repository import IWebhookRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionResult:
    """Record produced (or found) for a create call."""
    record: WebhookRecord
    is_new: bool


class IngestionService:
    """
    Orchestrates webhook persistence.

    Example:
        service = IngestionService(repository)
        result = await service.create(request, signature, "delivery-42")
        if not result.is_new:
            ...  # duplicate delivery, nothing written
    """

    def __init__(self, repository: IWebhookRepository) -> None:
        self._repository = repository

    async def create(
        self,
        request: CreateWebhookRequest,
        signature: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> IngestionResult:
        """
        Persist a webhook unless its idempotency key was already used.

        Args:
            request: Validated webhook body.
            signature: Signature header as received.
            idempotency_key: Client-supplied idempotency key.

        Returns:
            IngestionResult: The record and whether it was newly created.
        """
        if idempotency_key:
            existing = await self._repository.find_by_key(idempotency_key)
            if existing is not None:
                logger.info(
                    f"Duplicate delivery for idempotency key {idempotency_key}, "
                    f"returning webhook {existing.id}"
                )
                return IngestionResult(record=existing, is_new=False)

        record = WebhookRecord(
            id=str(uuid4()),
            source=request.source,
            event=request.event,
            payload=request.payload,
            signature=signature or None,
            idempotency_key=idempotency_key or None,
            received_at=utc_now(),
            status=WebhookStatus.PENDING.value,
        )

        try:
            saved = await self._repository.save(record)
        except DuplicateIdempotencyKeyError:
            winner = await self._repository.find_by_key(idempotency_key)
            if winner is None:
                raise
            logger.info(
                f"Concurrent delivery for idempotency key {idempotency_key} "
                f"resolved to webhook {winner.id}"
            )
            return IngestionResult(record=winner, is_new=False)

        logger.info(
            f"Webhook stored: id={saved.id}, source={saved.source}, event={saved.event}"
        )
        return IngestionResult(record=saved, is_new=True)

    async def find_one(self, webhook_id: str) -> WebhookRecord:
        """
        Get a webhook by ID.

        Raises:
            WebhookNotFoundError: If no record exists for the ID.
        """
        record = await self._repository.find_by_id(webhook_id)
        if record is None:
            raise WebhookNotFoundError(webhook_id)
        return record

    async def find_all(self, query: WebhookQuery) -> PaginatedWebhooks:
        """List webhooks newest first with pagination metadata."""
        records, total = await self._repository.list(
            source=query.source,
            event=query.event,
            offset=query.offset,
            limit=query.limit,
        )
        return PaginatedWebhooks(
            data=[WebhookSummary.model_validate(record) for record in records],
            meta=PaginationMeta(
                total=total,
                page=query.page,
                limit=query.limit,
                total_pages=math.ceil(total / query.limit),
            ),
        )
