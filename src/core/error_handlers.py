"""Exception handlers.

Render every error as ``{"error", "message", "status_code",
"correlation_id", ["details"]}``.
"""

import logging
import traceback
import uuid
from typing import Any, Dict, Optional

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import OperationalError

import config
from core.exceptions import AuthError, DrawingTutorialError, StorageUnavailableError
from core.rate_limit import rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


def _get_correlation_id(request: Request) -> str:
    value = getattr(request.state, "correlation_id", None) or correlation_id.get()
    return value or uuid.uuid4().hex[:8]


def _build_error_response(
    error_type: str,
    message: str,
    status_code: int,
    correlation_id_value: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    response = {
        "error": error_type,
        "message": message,
        "status_code": status_code,
        "correlation_id": correlation_id_value,
    }
    if details:
        response["details"] = details
    return response


def app_exception_handler(request: Request, exc: DrawingTutorialError) -> JSONResponse:
    """Render a DrawingTutorialError with its own status code.

    Args:
        request: The incoming request.
        exc: The raised exception.

    Returns:
        JSON response with error details.
    """
    cid = _get_correlation_id(request)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "%s on %s %s: %s [%s]",
        exc.__class__.__name__,
        request.method,
        request.url.path,
        exc.message,
        cid,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_error_response(
            exc.__class__.__name__, exc.message, exc.status_code, cid, exc.details
        ),
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request-body validation failures as 400 with per-field details."""
    cid = _get_correlation_id(request)
    fields = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields[".".join(location) or "body"] = error.get("msg", "invalid")
    logger.warning("Validation error on %s %s: %s [%s]", request.method, request.url.path, fields, cid)
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            _build_error_response("ValidationError", "Request validation failed", 400, cid, fields)
        ),
    )


def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
    return app_exception_handler(request, StorageUnavailableError())


def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected errors; internals are hidden outside development."""
    cid = _get_correlation_id(request)
    logger.error(
        "Unhandled exception on %s %s: %s [%s]",
        request.method,
        request.url.path,
        exc,
        cid,
        exc_info=exc,
    )
    if config.IS_DEVELOPMENT:
        message = str(exc)
        details = {
            "exception_type": exc.__class__.__name__,
            "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__)[-5:],
        }
    else:
        message = "An unexpected error occurred. Please try again later."
        details = None
    return JSONResponse(
        status_code=500,
        content=_build_error_response("InternalServerError", message, 500, cid, details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(DrawingTutorialError, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
