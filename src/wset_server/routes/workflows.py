"""Workflow query endpoints — dashboard, review queue, status lists, audit trail."""

import uuid
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wset_db.repository import WorkflowRepository
from wset_workflow.dashboard import DashboardService, to_workflow_summary
from wset_workflow.models.dashboard import (
    ActivityEntry,
    DashboardData,
    WorkflowStatistics,
    WorkflowSummary,
)
from wset_workflow.workflow_log import WorkflowLogger

from wset_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from wset_server.dependencies import (
    get_dashboard,
    get_db,
    get_repository,
    get_workflow_logger,
)

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.get("/dashboard")
async def get_dashboard_data(
    as_of: date | None = Query(None, description="Reference date (default: today)"),
    db: AsyncSession = Depends(get_db),
    dashboard: DashboardService = Depends(get_dashboard),
) -> DashboardData:
    """Workflows, live deadline validations, recent activity and counts.

    Always 200; a failed aggregation is reported in the ``error`` field.
    """
    return await dashboard.get_dashboard_data(db, as_of=as_of)


@router.get("/review")
async def list_requiring_review(
    db: AsyncSession = Depends(get_db),
    dashboard: DashboardService = Depends(get_dashboard),
) -> list[WorkflowSummary]:
    """Workflows flagged for manual review, oldest first."""
    return await dashboard.get_workflows_requiring_review(db)


@router.get("/status/{status}")
async def list_by_status(
    status: str,
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    dashboard: DashboardService = Depends(get_dashboard),
) -> list[WorkflowSummary]:
    """Workflows in one status, newest first.  400 on an unknown status."""
    return await dashboard.get_workflows_by_status(
        db, status, limit=limit, offset=offset,
    )


@router.get("/statistics")
async def get_statistics(
    start: datetime = Query(..., description="Range start (inclusive)"),
    end: datetime = Query(..., description="Range end (inclusive)"),
    db: AsyncSession = Depends(get_db),
    dashboard: DashboardService = Depends(get_dashboard),
) -> WorkflowStatistics:
    """Throughput and error rate for workflows created in ``[start, end]``."""
    if end < start:
        raise ValueError("Range end must not precede range start")
    return await dashboard.get_workflow_statistics(db, start, end)


@router.get("/activity")
async def get_recent_activity(
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    workflow_logger: WorkflowLogger = Depends(get_workflow_logger),
) -> list[ActivityEntry]:
    """Audit records across all workflows, newest first."""
    return await workflow_logger.get_recent_activity(db, limit=limit, offset=offset)


@router.get("/{workflow_id}")
async def get_workflow(
    workflow_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    repo: WorkflowRepository = Depends(get_repository),
) -> WorkflowSummary:
    """One workflow with its candidate data."""
    row = await repo.get_workflow(db, workflow_id)
    if row is None:
        raise ValueError(f"Workflow state {workflow_id} not found")
    return to_workflow_summary(row)


@router.get("/{workflow_id}/logs")
async def get_workflow_logs(
    workflow_id: uuid.UUID,
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    workflow_logger: WorkflowLogger = Depends(get_workflow_logger),
) -> list[ActivityEntry]:
    """Audit trail for one workflow, newest first."""
    return await workflow_logger.get_workflow_logs(
        db, workflow_id, limit=limit, offset=offset,
    )
