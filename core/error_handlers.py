"""
Exception Handlers.

Renders every failure path with the same body:

    {statusCode, message, errors?, requestId, timestamp, path}
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import WebhookServiceError
from core.schemas.webhook import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(
    request: Request,
    status_code: int,
    message: str,
    errors: Optional[list[str]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Build a JSONResponse carrying the uniform error body."""
    body = ErrorResponse(
        status_code=status_code,
        message=message,
        errors=errors,
        request_id=getattr(request.state, "request_id", None) or "unknown",
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def format_validation_errors(errors) -> list[str]:
    """Flatten pydantic error dicts into "field: message" strings."""
    messages = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = error.get("msg", "Invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return messages


async def webhook_service_error_handler(request: Request, exc: WebhookServiceError) -> JSONResponse:
    return error_response(request, exc.status_code, exc.message, errors=exc.errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(request, exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        errors=format_validation_errors(exc.errors()),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or "unknown"
    logger.error(
        f"Unhandled exception: request_id={request_id}, method={request.method}, "
        f"path={request.url.path}, error={exc!r}",
        exc_info=exc,
    )
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the uniform error handlers on an application."""
    app.add_exception_handler(WebhookServiceError, webhook_service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
