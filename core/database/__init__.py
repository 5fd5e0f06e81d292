"""
Core Database Package.

Provides centralized database management for the service.
"""

from core.database.base import Base, CreatedAt, UUIDPrimaryKey, utc_now
from core.database.engine import close_engine, get_engine
from core.database.session import (
    close_db_connections,
    get_db_session,
    get_session_factory,
    init_database,
    ping_database,
)

__all__ = [
    # Base
    "Base",
    "CreatedAt",
    "UUIDPrimaryKey",
    "utc_now",
    # Engine
    "get_engine",
    "close_engine",
    # Session
    "get_session_factory",
    "get_db_session",
    "ping_database",
    "close_db_connections",
    "init_database",
]
