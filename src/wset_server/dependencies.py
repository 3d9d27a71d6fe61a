"""FastAPI dependency injection — DB sessions, SDK services, operator auth.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on
error; SDK and repository code only ever ``flush()``.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wset_db.engine import session_scope
from wset_db.repository import WorkflowRepository
from wset_workflow.dashboard import DashboardService
from wset_workflow.processor import OrderProcessor
from wset_workflow.workflow_log import WorkflowLogger


# ------------------------------------------------------------------
# Database session (the transaction boundary)
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    async with session_scope() as session:
        yield session


# ------------------------------------------------------------------
# SDK services, built once during lifespan and kept on app.state
# ------------------------------------------------------------------

def get_repository(request: Request) -> WorkflowRepository:
    return request.app.state.repository


def get_processor(request: Request) -> OrderProcessor:
    return request.app.state.processor


def get_workflow_logger(request: Request) -> WorkflowLogger:
    return request.app.state.workflow_logger


def get_dashboard(request: Request) -> DashboardService:
    return request.app.state.dashboard


# ------------------------------------------------------------------
# Operator identity
# ------------------------------------------------------------------

async def require_admin_key(
    request: Request,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> str:
    """Validate ``X-Admin-Key`` against the configured ``ADMIN_API_KEY``.

    Raises 403 if admin endpoints are disabled or the key is wrong, 401 if
    the header is missing.
    """
    expected: str | None = request.app.state.settings.admin_api_key
    if not expected:
        raise HTTPException(
            status_code=403,
            detail="Admin endpoints are disabled (ADMIN_API_KEY not configured)",
        )
    if not x_admin_key:
        raise HTTPException(status_code=401, detail="X-Admin-Key header is required")
    # Constant-time comparison to prevent timing side-channels.
    if not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_admin_key
