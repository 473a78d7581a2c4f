"""HTTP middleware: request logging and the page-view counter."""

import logging
import time
from typing import Callable

from asgi_correlation_id import correlation_id
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from utils.admin_manager import record_page_view

logger = logging.getLogger(__name__)

# Paths that do not count as a page view
_UNCOUNTED_PREFIXES = ("/api/admin", "/api/health", "/uploads", "/docs", "/redoc", "/openapi.json")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.correlation_id = correlation_id.get()
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms) [%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request.state.correlation_id,
        )
        return response


def _count_page_view(session_factory: Callable[[], Session]) -> None:
    db = session_factory()
    try:
        record_page_view(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to record page view: %s", e)
    finally:
        db.close()


class PageViewMiddleware(BaseHTTPMiddleware):
    """Count GET requests to public paths.

    Uses ``app.state.session_factory`` so that the counter writes to the
    same database the routes use. The write runs in the threadpool so a
    locked database never stalls the event loop.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if request.method == "GET" and not request.url.path.startswith(_UNCOUNTED_PREFIXES):
            await run_in_threadpool(_count_page_view, request.app.state.session_factory)
        return response
