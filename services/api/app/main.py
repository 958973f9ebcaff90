"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from snaplink_shared import LogClient, RemoteLogMiddleware

from app.api.redirect import router as redirect_router
from app.api.router import router as api_router
from app.api.shorten import router as shorten_router
from app.core.config import get_settings
from app.core.database import close_db
from app.core.exceptions import register_exception_handlers
from app.core.middleware import SecurityHeadersMiddleware
from app.core.observability import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from app.core.rate_limit import limiter
from app.core.redis import close_redis

settings = get_settings()

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()

# Remote logging client shared by middleware and routes through app.state
log_client = LogClient(
    endpoint=settings.log_endpoint,
    token=settings.log_token,
    buffer_size=settings.log_buffer_size,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting Snaplink API", version=settings.app_version)
    yield
    # Shutdown
    logger.info("Shutting down Snaplink API")
    await close_redis()
    await log_client.aclose()
    logger.info("Log client closed")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="URL Shortener",
    lifespan=lifespan,
)
app.state.log_client = log_client

# Set up observability (logging, tracing, metrics, Sentry)
setup_observability(app)

# Application errors -> JSON error responses
register_exception_handlers(app)

# Rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Middleware stack (order matters - last added = outermost = runs first on request, last on response)

# Remote request/error logging
app.add_middleware(RemoteLogMiddleware, client=log_client, stack="backend", package="route")

# Request logging middleware (logs all requests with timing)
app.add_middleware(RequestLoggingMiddleware)

# Request ID middleware (adds unique ID to each request)
app.add_middleware(RequestIDMiddleware)

# Security headers middleware
app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=not settings.debug,  # Enable HSTS in production
)

# CORS middleware (outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Request-ID"],
)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Describe the API."""
    return {
        "message": "URL Shortener API",
        "version": settings.app_version,
        "endpoints": {
            "POST /shorten": {
                "description": "Create a short URL",
                "body": {
                    "url": "string (required) - The original URL to shorten",
                    "validity": "number (optional) - Validity in minutes "
                    f"(default: {settings.default_validity_minutes})",
                    "shortcode": "string (optional) - Custom short code",
                },
            },
            "GET /{shortCode}": {"description": "Redirect to original URL"},
            "GET /api/stats/{shortCode}": {"description": "Get URL statistics"},
            "GET /api/urls": {
                "description": "Get all URLs with pagination",
                "query": {
                    "page": "number (optional) - Page number (default: 1)",
                    "limit": "number (optional) - Items per page (default: 10)",
                    "sortBy": "string (optional) - Sort field (default: createdAt)",
                    "sortOrder": "string (optional) - asc/desc (default: desc)",
                    "includeExpired": "boolean (optional) - Include expired URLs (default: false)",
                },
            },
            "DELETE /api/urls/{shortCode}": {"description": "Delete a short URL"},
            "PATCH /api/urls/{shortCode}/status": {
                "description": "Activate or deactivate a short URL",
                "body": {"isActive": "boolean - New status"},
            },
            "POST /api/urls/cleanup": {"description": "Delete all expired URLs"},
        },
    }


# Include routers
app.include_router(shorten_router)
app.include_router(api_router)

# Redirect router - must be last so fixed routes take precedence
# The redirect endpoint handles /{short_code} for URL redirects
app.include_router(redirect_router)
