"""
Core Models Package.

Exports database models so Base.metadata knows every table.
"""

from core.models.webhook import WebhookRecord, WebhookStatus

__all__ = ["WebhookRecord", "WebhookStatus"]
