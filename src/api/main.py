"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from src.api.v1 import router as v1_router
from src.bootstrap import open_container
from src.config.settings import get_settings
from src.domain.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Event Registration API v1 - Register entries and sign in with emailed codes",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Opens the record store (pool + migrations) and HTTP clients on startup
    - Closes all of them on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")

    with open_container(settings) as container:
        # Store container in app state for dependency injection
        app.state.container = container
        logger.info("Application startup complete")

        yield

        logger.info("Shutting down application...")

    logger.info("Resources closed")


app = FastAPI(
    title="autoreg",
    description="Event Registration API - Bulk registration with email-code sign-in",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with record store validation.

    Returns 200 OK if application and record store are healthy,
    503 if the store cannot be reached.
    """
    store = request.app.state.container.store
    try:
        store.ping()
    except StoreUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from None

    return {"status": "healthy"}
