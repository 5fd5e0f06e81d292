"""
Database Engine Management Module.

Provides a singleton AsyncEngine for the entire application.
Uses configuration from core.providers.ConfigurationProvider.

SSL Configuration (PostgreSQL only):
    DATABASE_SSL_MODE controls SSL behavior:
    - "verify-full": Full SSL verification with certificate check (RECOMMENDED for production)
    - "require": Require SSL but don't verify certificate (default)
    - "disable": No SSL (only for local development)

    DATABASE_SSL_CERT_PATH: Path to CA certificate file (required for verify-full mode)
"""

import logging
import ssl

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from core.providers import get_configuration_provider

_logger = logging.getLogger(__name__)

# Global engine instance
_engine: AsyncEngine | None = None


def _is_postgres(database_url: str) -> bool:
    return database_url.startswith(("postgresql", "postgres"))


def _get_ssl_context(ssl_mode: str, cert_path: str) -> ssl.SSLContext | None:
    """
    Create SSL context for the given DATABASE_SSL_MODE.

    Returns:
        ssl.SSLContext for require/verify-full mode
        None for disable mode
    """
    if ssl_mode == "disable":
        _logger.warning(
            "DATABASE_SSL_MODE=disable: SSL is disabled. "
            "This is insecure and should only be used for local development."
        )
        return None

    if ssl_mode == "verify-full":
        if cert_path:
            ctx = ssl.create_default_context(cafile=cert_path)
            ctx.check_hostname = True
            ctx.verify_mode = ssl.CERT_REQUIRED
            _logger.info(f"SSL mode: verify-full with cert: {cert_path}")
            return ctx
        _logger.error(
            "DATABASE_SSL_MODE=verify-full requires DATABASE_SSL_CERT_PATH. "
            "Falling back to 'require' mode."
        )
    elif ssl_mode != "require":
        _logger.warning(f"Unknown DATABASE_SSL_MODE '{ssl_mode}'. Using 'require' mode.")

    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def get_engine() -> AsyncEngine:
    """
    Get or create the async database engine (singleton).

    Returns:
        AsyncEngine: SQLAlchemy async engine instance.

    Raises:
        RuntimeError: If DATABASE_URL is not configured.
    """
    global _engine

    if _engine is None:
        config = get_configuration_provider()
        database_url = config.get("database.url", "")
        if not database_url:
            raise RuntimeError("DATABASE_URL is not configured")

        if _is_postgres(database_url):
            _engine = create_async_engine(
                database_url,
                echo=False,
                pool_pre_ping=True,
                pool_size=20,
                max_overflow=40,
                connect_args={
                    "ssl": _get_ssl_context(
                        config.get("database.ssl_mode", "require"),
                        config.get("database.ssl_cert_path", ""),
                    ),
                },
            )
        else:
            _engine = create_async_engine(database_url, echo=False)

    return _engine


async def close_engine() -> None:
    """
    Close the database engine and release all connections.

    Should be called during application shutdown.
    """
    global _engine

    if _engine is not None:
        await _engine.dispose()
        _engine = None
