"""API module - REST endpoints."""
from api.webhooks import router as webhooks_router

__all__ = ["webhooks_router"]
