"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from wset_server.routes.admin import router as admin_router
from wset_server.routes.deadlines import router as deadlines_router
from wset_server.routes.webhooks import router as webhooks_router
from wset_server.routes.workflows import router as workflows_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(webhooks_router, prefix=API_PREFIX)
    app.include_router(workflows_router, prefix=API_PREFIX)
    app.include_router(deadlines_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
