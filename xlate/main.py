"""xlate FastAPI application entry point.

Wires the durable store, both translation providers and the engine
together (see :mod:`xlate.bootstrap`), stores them on ``app.state`` and
mounts the API router.  Settings come from the environment and ``.env``;
the runtime translation configuration is read from the durable store when
the engine starts.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from xlate import __version__
from xlate.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from xlate.api.routes import router as api_router
from xlate.bootstrap import build_components, start_components, stop_components
from xlate.config.settings import Settings
from xlate.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Start the store and engine on startup, flush and close on shutdown."""
    components = build_components(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    await start_components(components)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        store=components["store"].get_provider_name(),
        provider_mode=components["engine"].provider_mode.value,
    )

    yield

    await stop_components(components)
    _logger.info("app_shutdown", message="Engine flushed and HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="xlate API",
        version=__version__,
        description=(
            "Translate short texts through a coalescing, batching cache. "
            "Concurrent identical requests share one outbound call and "
            "results persist across restarts."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "xlate.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
