#!/usr/bin/env python3
"""
FastAPI application for the event engine.

Run with ``python run.py serve api`` or ``uvicorn api.app:app`` from ``src/``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.exceptions import EventEngineError
from .routes import router

logger = logging.getLogger(__name__)

APP_TITLE = "Event Engine"
APP_VERSION = "1.0.0"


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=APP_TITLE,
        version=APP_VERSION,
        description="Local event discovery, classification and research brief fan-out",
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.info(f"{request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(f"Response status: {response.status_code}")
        return response

    @app.exception_handler(EventEngineError)
    async def engine_error_handler(request: Request, exc: EventEngineError):
        logger.error(f"{request.url.path} failed: {exc.to_dict()}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "details": exc.message}
        )

    app.include_router(router, tags=["events"])
    return app


app = create_app()
