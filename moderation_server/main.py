"""Moderation server FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from moderation_server.api.dependencies import EnvelopeResponse
from moderation_server.api.routes import router as api_router
from moderation_server.config import Settings, get_settings
from moderation_server.lib.exceptions import ModerationError
from moderation_server.lib.models import ActionResult
from moderation_server.lib.registry import ModeratorRegistry
from moderation_server.lib.store import ModerationStore
from moderation_server.lib.sweeper import MuteSweeper

logger = logging.getLogger(__name__)

SERVICE_NAME = "Day R Moderation Server"
VERSION = "1.0.0"

ENDPOINTS = {
    "ban": "POST /api/moderation/ban",
    "unban": "POST /api/moderation/unban",
    "mute": "POST /api/moderation/mute",
    "unmute": "POST /api/moderation/unmute",
    "banlist": "GET /api/moderation/banlist",
    "mutelist": "GET /api/moderation/mutelist",
    "status": "GET /api/moderation/status/:userId",
}


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=settings.log_level_value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    store: ModerationStore = app.state.store

    # Startup
    logger.info("=================================")
    logger.info(f"{SERVICE_NAME} Running")
    logger.info(f"Port: {settings.port}")
    logger.info(
        f"Moderators: {', '.join(str(m) for m in sorted(store.registry.ids))}"
    )
    for route in ENDPOINTS.values():
        logger.info(f"  {route}")
    logger.info("  GET /ping (health check)")
    logger.info(f"Store initialized: {store.get_stats().model_dump()}")

    sweeper = MuteSweeper(store, settings.sweep_interval_seconds)
    sweeper.start()
    app.state.sweeper = sweeper

    yield

    # Shutdown
    logger.info(f"Shutting down {SERVICE_NAME}...")
    await sweeper.stop()
    logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    settings: Settings | None = None,
    store: ModerationStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The store is created here unless one is supplied and lives on
    ``app.state`` for the lifetime of the app.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    if store is None:
        store = ModerationStore(ModeratorRegistry(settings.moderator_ids), settings)

    app = FastAPI(
        title=SERVICE_NAME,
        description="Ban and mute state for game moderators",
        version=VERSION,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.store = store

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )

    # Exception handlers
    register_exception_handlers(app)

    # Routes
    app.include_router(api_router, prefix="/api")

    # Root endpoints
    @app.get("/", tags=["Health"])
    async def describe() -> dict:
        """Service descriptor."""
        return {
            "status": "online",
            "message": SERVICE_NAME,
            "endpoints": ENDPOINTS,
        }

    @app.get("/ping", tags=["Health"])
    async def ping() -> dict:
        """Liveness check for clients."""
        return {"pong": True, "timestamp": store.now()}

    return app


# =============================================================================
# Exception Handlers
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(ModerationError)
    async def moderation_error_handler(
        request: Request, exc: ModerationError
    ) -> EnvelopeResponse:
        return EnvelopeResponse(ActionResult(success=False, error=exc.message).to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Endpoint not found",
                    "path": request.url.path,
                    "method": request.method,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers,
        )


# =============================================================================
# Application Instance
# =============================================================================


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
