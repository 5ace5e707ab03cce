"""Feedback service FastAPI application entry point.

Builds the storage connectors and the fan-out handler at startup via
dependency injection, configures structured logging, and mounts the
feedback routes.  Configuration comes from ``.env`` / environment
variables (Settings) layered over ``config/config.yaml``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.storage.factory import create_feedback_handler
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

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
    """Build the connector registry and handler once; every request reuses them."""
    config = load_config(settings=settings)
    handler = await create_feedback_handler(settings)
    application.state.feedback_handler = handler

    _logger.info(
        "app_startup",
        version=config.get("app", {}).get("version", _VERSION),
        environment=settings.app_env,
        connectors=handler.get_registered_connectors(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Documentation Feedback API",
        version=_VERSION,
        description=(
            "Receives feedback from the documentation-site widget and stores it "
            "in every configured backend (Linear, SQLite, or an in-memory mock)."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_allowed_origins())

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
