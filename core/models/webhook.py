"""
Webhook Record Model.

One row per accepted logical webhook event. Rows are created by
IngestionService and never mutated by the ingestion path; status
transitions belong to downstream processors.

Idempotency:
    `idempotency_key` is UNIQUE (NULLs allowed). The database constraint
    is what guarantees one record per key under concurrent deliveries.
"""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.database.base import Base, CreatedAt, UUIDPrimaryKey


class WebhookStatus(str, Enum):
    """Processing status of a stored webhook."""
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class WebhookRecord(Base):
    """
    Persisted inbound webhook.

    Attributes:
        id: UUID v4 primary key.
        source: Sender identifier (e.g. "stripe", "github").
        event: Event type (e.g. "payment.completed").
        payload: Opaque JSON object as received.
        signature: Caller-supplied signature header, if any.
        idempotency_key: Caller-supplied idempotency key, if any.
        received_at: UTC time the webhook was accepted.
        status: Processing status, "pending" on creation.
    """

    __tablename__ = "webhooks"

    id: Mapped[UUIDPrimaryKey]

    source: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    event: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(
        Text,
        unique=True,
        index=True,
        nullable=True,
    )

    received_at: Mapped[CreatedAt]

    status: Mapped[str] = mapped_column(
        String(20),
        default=WebhookStatus.PENDING.value,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WebhookRecord(id={self.id}, source={self.source}, event={self.event})>"
