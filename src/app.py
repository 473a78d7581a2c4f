"""Main FastAPI application module.

This module initializes the FastAPI application and registers middleware,
exception handlers and all route handlers.
"""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from core.logging_config import setup_logging
from config import (
    API_HOST,
    API_PORT,
    CORS_ALLOWED_ORIGINS,
    IS_DEVELOPMENT,
    UPLOADS_DIR,
)
from core.database import SessionLocal, init_db
from core.error_handlers import register_exception_handlers
from core.middleware import PageViewMiddleware, RequestLoggingMiddleware
from core.rate_limit import limiter
from api.routes import admin, auth, comments, drawings, enrollment

# Setup logging
setup_logging()

# Initialize FastAPI application
app = FastAPI(
    title="Drawing Tutorial API",
    description="Backend API for the drawing tutorial community.",
    version="1.0.0",
)

app.state.limiter = limiter
# Session factory used outside request-scoped dependencies (page views)
app.state.session_factory = SessionLocal

# Configure middleware; the last one added runs first
app.add_middleware(PageViewMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Correlation-ID")

register_exception_handlers(app)

# Register route handlers
app.include_router(auth.router)
app.include_router(drawings.router)
app.include_router(comments.router)
app.include_router(admin.router)
app.include_router(enrollment.router)

# Locally stored drawing images
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(UPLOADS_DIR)), name="uploads")


@app.on_event("startup")
def startup_tasks() -> None:
    """Create database tables if they do not exist."""
    init_db()


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Drawing Tutorial API",
        "version": "1.0.0",
        "description": "Backend API for the drawing tutorial community.",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    print(f"Drawing Tutorial API: {server_url}")
    print(f"API docs: {server_url}/docs")

    # reload=True enables auto-reload on code changes
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=IS_DEVELOPMENT)
