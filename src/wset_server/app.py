"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that builds the workflow services once
  - CORS middleware
  - Global exception handlers (SDK ValueError → 404/400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``wset-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from wset_db.engine import dispose_engine, get_engine
from wset_db.repository import WorkflowRepository
from wset_workflow.dashboard import DashboardService
from wset_workflow.processor import OrderProcessor
from wset_workflow.workflow_log import WorkflowLogger

from wset_server.config import ServerSettings, load_settings
from wset_server.errors import generic_error_handler, value_error_handler
from wset_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup and shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the workflow services at startup, dispose the pool on shutdown.

    The services are stateless; one shared instance of each lives on
    ``app.state`` for dependency injection.
    """
    repo = WorkflowRepository()
    workflow_logger = WorkflowLogger(repo)

    app.state.repository = repo
    app.state.workflow_logger = workflow_logger
    app.state.processor = OrderProcessor(
        repository=repo, workflow_logger=workflow_logger,
    )
    app.state.dashboard = DashboardService(
        repository=repo, workflow_logger=workflow_logger,
    )
    logger.info("Workflow services initialised")

    yield

    # --- Shutdown ---
    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="WSET Workflow API Server",
        description="REST API for WSET exam deadline validation and order intake",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — verifies DB connectivity."""
        try:
            engine = get_engine()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn wset_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``wset-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "wset_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
