"""
Webhook Receiver Service - Entry Point.

Headless ASGI application for uvicorn execution.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 3000 --reload

Or run directly:
    python main.py
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI

from core.app_context import AppContext
from core.database import close_db_connections, init_database
from core.logging_config import parse_log_level, setup_logging
from core.providers import get_configuration_provider
from core.server import create_base_app

# Paths ignored by the auto-reloader in debug mode
RELOAD_EXCLUDES = ["logs/*", "**/__pycache__/*", "**/*.pyc", ".venv/*", "*.log"]


# -----------------------------------------------------------------------------
# Application Factory
# -----------------------------------------------------------------------------


def create_app_context() -> AppContext:
    """Create and configure the AppContext."""
    context = AppContext()
    for problem in context.config.validate():
        logging.getLogger(__name__).warning(f"Configuration: {problem}")
    return context


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Creates the schema on startup and disposes the connection pool on shutdown.
    """
    logger = logging.getLogger(__name__)

    # Startup
    logger.info("Starting Webhook Receiver Service...")
    try:
        await init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    port = app.state.context.config.get("server.port", 3000)
    logger.info(f"Application started successfully (port {port})")

    yield

    # Shutdown
    logger.info("Shutting down Webhook Receiver Service...")
    await close_db_connections()
    logger.info("Cleanup complete")


# -----------------------------------------------------------------------------
# Module-level Application Instance
# -----------------------------------------------------------------------------

# Setup logging first
setup_logging(parse_log_level(get_configuration_provider().get("app.log_level")))

_context = create_app_context()

_app = create_base_app(_context)
_app.router.lifespan_context = lifespan

# Export for uvicorn
app = _app


# -----------------------------------------------------------------------------
# Direct Execution
# -----------------------------------------------------------------------------


def main() -> None:
    """Run the application directly with uvicorn."""
    host = _context.config.get("server.host", "127.0.0.1")
    port = _context.config.get("server.port", 3000)
    debug = _context.config.get("app.debug", False)

    uvicorn_config = {
        "host": host,
        "port": port,
        "reload": debug,
        "log_level": "warning",  # Suppress uvicorn info logs
        "access_log": False,     # RequestContextMiddleware logs every request
    }

    if debug:
        uvicorn_config["reload_excludes"] = RELOAD_EXCLUDES

    uvicorn.run("main:app", **uvicorn_config)


if __name__ == "__main__":
    main()
