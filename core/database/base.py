"""
Database Base Model Module.

Defines the declarative base and common column annotations.
"""

from datetime import datetime, timezone
from typing import Annotated
from uuid import uuid4

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, mapped_column


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


# Custom type annotations for common column types
UUIDPrimaryKey = Annotated[
    str,
    mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    ),
]

CreatedAt = Annotated[
    datetime,
    mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        index=True,
    ),
]


class Base(DeclarativeBase):
    """
    Declarative base class for all SQLAlchemy models.
    """
    pass
