"""FastAPI application entry point.

Main application setup with CORS, startup hooks, and route registration.

To run:
    uvicorn survey_analytics.api.main:app --reload --port 8000
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from survey_analytics.api.db.database import create_tables
from survey_analytics.api.routes import chat, data
from survey_analytics.core.config import CORS_ORIGINS, LOG_LEVEL, REFERENCE_CACHE_TTL_SECONDS
from survey_analytics.core.reference_cache import ReferenceCache
from survey_analytics.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Runs on startup and shutdown:
    - Startup: Configure logging, create database tables, create the reference cache
    - Shutdown: Drop cached reference data

    Args:
        app: FastAPI application instance

    Yields:
        None: Control returns to application during runtime
    """
    configure_logging(LOG_LEVEL)
    logger.info("api_starting")

    # Create database tables (survey data itself is loaded externally)
    create_tables()
    app.state.reference_cache = ReferenceCache(ttl_seconds=REFERENCE_CACHE_TTL_SECONDS)
    logger.info("api_ready", reference_cache_ttl_seconds=REFERENCE_CACHE_TTL_SECONDS)

    yield

    app.state.reference_cache.invalidate()
    logger.info("api_shutdown")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Survey Analytics API",
    description="REST API for the disease survey dashboard",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# ============================================================================
# CORS Middleware
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Route Registration
# ============================================================================


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "service": "survey-analytics-api"}


app.include_router(data.router, prefix="/api", tags=["data"])
app.include_router(chat.router, prefix="/api", tags=["chat"])


# ============================================================================
# Development Server
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "survey_analytics.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
