"""
Webhook service exceptions.

Domain errors carry the HTTP status they map to. The exception handlers
registered in ``core.server`` render them with the uniform error body.
"""

from typing import Optional


class WebhookServiceError(Exception):
    """Base exception for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        self.message = message
        self.errors = errors
        super().__init__(message)


class AuthenticationFailure(WebhookServiceError):
    """Missing or invalid API key."""

    status_code = 401


class AuthorizationFailure(WebhookServiceError):
    """Missing or invalid webhook signature."""

    status_code = 403


class ValidationFailure(WebhookServiceError):
    """
    Malformed request input.

    ``errors`` holds one human-readable message per offending field.
    """

    status_code = 400

    def __init__(self, errors: list[str], message: str = "Validation failed") -> None:
        super().__init__(message, errors=errors)


class WebhookNotFoundError(WebhookServiceError):
    """No webhook record exists for the requested identifier."""

    status_code = 404

    def __init__(self, webhook_id: str) -> None:
        self.webhook_id = webhook_id
        super().__init__(f'Webhook with ID "{webhook_id}" not found')


class ServiceUnavailableError(WebhookServiceError):
    """A required backing service (e.g. the database) is unreachable."""

    status_code = 503


class DuplicateIdempotencyKeyError(Exception):
    """
    Raised by the repository when an insert collides on idempotency_key.

    Never reaches the HTTP layer: IngestionService resolves it by
    re-reading the winning record.
    """

    def __init__(self, idempotency_key: str) -> None:
        self.idempotency_key = idempotency_key
        super().__init__(f"Duplicate idempotency key: {idempotency_key}")
