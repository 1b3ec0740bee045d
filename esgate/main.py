"""
esgate — FastAPI Application Factory
====================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (`uvicorn esgate.main:app`) or `python -m esgate`.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────────────────────────┐               │
    │  │ Access log (request ID, engine)  │               │
    │  └──────────────────────────────────┘               │
    │                                                     │
    │  Routes:                                            │
    │  /insert /update /delete /search /get /health       │
    │                                                     │
    │  Exception Handlers:                                │
    │  NotFound→404 │ EngineError→500 │ Exception→500     │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (warn on missing password)
    3. Build EngineClient from the frozen ConnectionConfig
    4. Engine health check, then index creation; either failure aborts startup

    Shutdown:
    1. Close the EngineClient's HTTP connections
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from esgate import __version__
from esgate.config import settings
from esgate.exceptions import DocumentNotFoundError, EngineError, GatewayError
from esgate.middleware.access_log import (
    AccessLogMiddleware,
    record_engine_failure,
    request_id_var,
)
from esgate.routes import documents, health
from esgate.services.engine_client import EngineClient

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Level:  settings.log_level (LOG_LEVEL)

    Engine response bodies are logged at DEBUG by EngineClient, so LOG_LEVEL=DEBUG
    shows every raw engine reply.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are noisy at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect to the engine on startup and disconnect on shutdown.

    If create_app() was given an EngineClient it is used as-is; otherwise one
    is built from settings. A failing health check or index creation is logged
    and re-raised, which makes uvicorn abort startup and exit non-zero.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("esgate %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("Configuration error: %s", str(e))

    client: Optional[EngineClient] = getattr(app.state, "engine_client", None)
    if client is None:
        client = EngineClient(settings.connection_config())
        app.state.engine_client = client

    logger.info("Engine: %s (index=%s)", client.config.base_url, client.index)
    try:
        await client.check_health()
        await client.create_index()
    except EngineError as e:
        logger.critical("Startup failed: %s", e.message)
        await client.aclose()
        raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("esgate shutting down...")
    await client.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        DocumentNotFoundError  → 404 Not Found
        GatewayError (base)    → 500 Internal Server Error, with the error message
        Exception (fallback)   → 500 Internal Server Error, generic message

    Engine context (status, raw body, URL) is logged, never returned. The
    failed action and engine status are also left on request.state for the
    access log line.
    """

    @app.exception_handler(DocumentNotFoundError)
    async def handle_not_found(request: Request, exc: DocumentNotFoundError):
        rid = request_id_var.get("")
        record_engine_failure(request, exc)
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError):
        rid = request_id_var.get("")
        record_engine_failure(request, exc)
        logger.error("[%s] Engine error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "engine_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: the stack trace is logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(engine_client: Optional[EngineClient] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        engine_client: Pre-built client to use instead of one built from
                       settings during startup (tests, embedding).

    Returns:
        Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="esgate API",
        description=(
            "HTTP gateway forwarding employee CRUD and search requests "
            "to an Elasticsearch-compatible engine."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    if engine_client is not None:
        app.state.engine_client = engine_client

    # ── Register Middleware ───────────────────────────────────────────────
    # Outermost: assigns the request ID and writes the access line
    app.add_middleware(AccessLogMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(documents.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
