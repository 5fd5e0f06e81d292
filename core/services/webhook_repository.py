"""
Webhook Repository.

Persistence collaborator for webhook records. IngestionService only talks
to the IWebhookRepository protocol; SqlAlchemyWebhookRepository is the
production implementation.
"""

import logging
from typing import Optional, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DuplicateIdempotencyKeyError
from core.models import WebhookRecord

logger = logging.getLogger(__name__)


class IWebhookRepository(Protocol):
    """Protocol for webhook persistence."""

    async def save(self, record: WebhookRecord) -> WebhookRecord:
        """
        Persist a new record atomically.

        Raises:
            DuplicateIdempotencyKeyError: If another record already holds
                the same idempotency key.
        """
        ...

    async def find_by_key(self, idempotency_key: str) -> Optional[WebhookRecord]:
        ...

    async def find_by_id(self, webhook_id: str) -> Optional[WebhookRecord]:
        ...

    async def list(
        self,
        source: Optional[str],
        event: Optional[str],
        offset: int,
        limit: int,
    ) -> tuple[Sequence[WebhookRecord], int]:
        """Return one page ordered by received_at descending, plus the total count."""
        ...


class SqlAlchemyWebhookRepository:
    """Webhook repository backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, record: WebhookRecord) -> WebhookRecord:
        self._session.add(record)
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            if record.idempotency_key:
                logger.info(
                    f"Insert rejected by idempotency key constraint: {record.idempotency_key}"
                )
                raise DuplicateIdempotencyKeyError(record.idempotency_key) from e
            raise
        return record

    async def find_by_key(self, idempotency_key: str) -> Optional[WebhookRecord]:
        result = await self._session.execute(
            select(WebhookRecord).where(WebhookRecord.idempotency_key == idempotency_key)
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, webhook_id: str) -> Optional[WebhookRecord]:
        return await self._session.get(WebhookRecord, webhook_id)

    async def list(
        self,
        source: Optional[str],
        event: Optional[str],
        offset: int,
        limit: int,
    ) -> tuple[Sequence[WebhookRecord], int]:
        conditions = []
        if source:
            conditions.append(WebhookRecord.source == source)
        if event:
            conditions.append(WebhookRecord.event == event)

        count_stmt = select(func.count()).select_from(WebhookRecord).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        page_stmt = (
            select(WebhookRecord)
            .where(*conditions)
            .order_by(WebhookRecord.received_at.desc())
            .offset(offset)
            .limit(limit)
        )
        records = (await self._session.execute(page_stmt)).scalars().all()
        return records, total
