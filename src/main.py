"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import (
    get_connectivity_monitor,
    get_directory_service,
    get_like_service,
    get_local_storage,
    get_message_service,
    get_offline_queue,
)
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler
from infrastructure.database.session import create_schema, engine

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    if not settings.is_production:
        await create_schema()

    storage = get_local_storage()
    await storage.initialize()

    # Replay handlers must be registered before persisted operations are processed
    get_directory_service()
    get_like_service()
    get_message_service()

    queue = get_offline_queue()
    await queue.initialize()

    connectivity = get_connectivity_monitor()
    await connectivity.start()
    await queue.process_queue()

    logger.info("application_started", environment=settings.app_env, pending=len(queue))
    yield

    await connectivity.stop()
    await queue.close()
    await storage.dispose()
    await engine.dispose()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Event-scoped discovery and matching\n\n"
            "Attendees of a time-boxed event create an ephemeral profile, discover "
            "compatible attendees, like them and chat once the like is mutual.\n\n"
            "### Sessions\n"
            "Sessions are anonymous. `POST /api/v1/sessions/join` returns an event id "
            "and a session id; send them on every other call:\n"
            "```\nX-Event-Id: <event_id>\nX-Session-Id: <session_id>\n```\n\n"
            "### Offline writes\n"
            "When the store is unreachable, replayable writes answer `202` with "
            "`OPERATION_QUEUED` and are applied once connectivity returns.\n\n"
            "### Rate Limits\n"
            "- Likes and messages: 60 requests/minute\n"
            "- Join and block: 10-30 requests/minute"
        ),
        version="1.0.0",
        debug=settings.debug,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "sessions", "description": "Joining and resuming events"},
            {"name": "events", "description": "Event lookup by join code"},
            {"name": "profiles", "description": "The caller's own profile"},
            {"name": "discovery", "description": "Compatible attendees"},
            {"name": "likes", "description": "Likes and matches"},
            {"name": "blocks", "description": "Blocking attendees"},
            {"name": "messages", "description": "Chat between matches"},
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
