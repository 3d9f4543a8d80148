"""
Site Chat Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Startup
-------
1. Load the persisted default knowledge base (empty if missing or unreadable).
2. Start the periodic session sweeper.

Shutdown cancels the sweeper.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.errors import (
    UpstreamServiceError,
    unhandled_exception_handler,
    upstream_exception_handler,
    validation_exception_handler,
)
from .knowledge.models import KnowledgeBase
from .knowledge.snapshot import SnapshotError, load_knowledge_base
from .sessions.store import session_store
from .sessions.sweeper import run_sweeper

from .api import (
    chat_routes,
    dependencies,
    health_routes,
    session_routes,
)


logger = logging.getLogger("sitechat.app")


def _load_default_knowledge_base() -> KnowledgeBase:
    try:
        return load_knowledge_base(settings.knowledge_base_path)
    except SnapshotError as exc:
        logger.error("Default knowledge base unavailable: %s", exc)
        return KnowledgeBase.empty()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Starting sitechat")

    if not settings.ai_api_key.get_secret_value():
        logger.warning("AI_API_KEY is not set; embedding and chat calls will be rejected")

    dependencies.set_default_knowledge_base(_load_default_knowledge_base())

    sweeper = asyncio.create_task(
        run_sweeper(session_store, settings.session_sweep_interval_seconds),
        name="session-sweeper",
    )
    app.state.sweeper = sweeper

    try:
        yield
    finally:
        logger.info("Shutting down sitechat")
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory pattern allows:
    - Clean test instantiation
    - Controlled dependency overrides in pytest

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="sitechat",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(UpstreamServiceError, upstream_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(session_routes.router)
    app.include_router(chat_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()
