"""
Blog API — FastAPI Application Factory
=======================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, exception
       handlers and the database lifecycle in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       that owns a `Database` handle on `app.state.database`.
Who:   uvicorn (`uvicorn blog_api.main:app`) or the `blog-api` console script.

Lifecycle:
    Startup:
    1. Initialize logging
    2. Connect the database handle (creates the posts table)

    Shutdown:
    1. Dispose the database handle (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, TextIO

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from blog_api import __version__
from blog_api.config import settings
from blog_api.database import Database
from blog_api.exceptions import (
    BlogApiError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from blog_api.middleware.logging import RequestLoggingMiddleware
from blog_api.middleware.request_id import (
    RequestIDLogFilter,
    RequestIDMiddleware,
    request_id_var,
)
from blog_api.routes import health, posts

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(stream: Optional[TextIO] = None) -> None:
    """
    Configure logging for the entire application.

    Called once during startup, before anything else logs. Every record
    passes through RequestIDLogFilter, so lines logged while a request is
    handled carry its ID and lines outside a request show "-".
    Format: 2024-01-15T12:00:00 [INFO] blog_api.access [1f0c2a9b]: GET /posts 200 3.1ms
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the database handle on startup and close it on shutdown.

    Code before `yield` runs on startup, code after it on shutdown.
    """
    setup_logging()
    logger.info("Blog API starting up...")

    database: Database = app.state.database
    await database.connect()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Blog API shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError   → 400 Bad Request
        NotFoundError     → 404 Not Found
        DatabaseError     → 500 Internal Server Error (generic message)
        BlogApiError      → 500 Internal Server Error
        Exception         → 500 Internal Server Error (unexpected errors)

    Internal details (driver messages, SQL) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("Validation error: %s", exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Generic message to the client, details logged server-side."""
        rid = request_id_var.get("")
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(BlogApiError)
    async def handle_app_error(request: Request, exc: BlogApiError):
        rid = request_id_var.get("")
        logger.error("Application error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all; the stack trace is logged server-side only."""
        rid = request_id_var.get("")
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Handle the app should own. Defaults to one built from
                  settings.database_url; tests pass an already-connected one.
    """
    app = FastAPI(
        title="Blog API",
        description="REST CRUD service for blog posts.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.database = database or Database(
        settings.database_url,
        echo=settings.log_level == "DEBUG",
        create_tables=settings.db_create_tables,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = first run)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(posts.router)
    app.include_router(health.router)

    return app


def run() -> None:
    """Entry point for the `blog-api` console script."""
    uvicorn.run(
        "blog_api.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


# uvicorn expects `blog_api.main:app` to be importable; no connection is
# opened until the lifespan startup runs
app = create_app()
