"""Admin endpoints — reprocess failed orders and apply manual workflow updates.

Protected by the ``ADMIN_API_KEY`` environment variable.  Every request
must include an ``X-Admin-Key`` header whose value matches the configured
key.  Returns 401 if missing, 403 if wrong.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from wset_db.models.enums import WorkflowAction
from wset_workflow.models.results import (
    OperationResult,
    OrderProcessingResult,
    WorkflowUpdate,
)
from wset_workflow.processor import OrderProcessor
from wset_workflow.workflow_log import UPDATE_REJECTED_PREFIX, WorkflowLogger

from wset_server.dependencies import (
    get_db,
    get_processor,
    get_workflow_logger,
    require_admin_key,
)

router = APIRouter(prefix="/admin", tags=["admin"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class ReprocessRequest(BaseModel):
    performed_by: str | None = None


class WorkflowUpdateRequest(WorkflowUpdate):
    """A workflow update plus the audit entry recorded alongside it."""

    action: WorkflowAction | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    performed_by: str | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/orders/{order_id}/reprocess")
async def reprocess_order(
    order_id: str,
    body: ReprocessRequest | None = None,
    db: AsyncSession = Depends(get_db),
    processor: OrderProcessor = Depends(get_processor),
    _admin: str = Depends(require_admin_key),
) -> OrderProcessingResult:
    """Reset a failed workflow to ``processing``.

    404 if the order has no workflow, 409 if it is completed or has no
    errors to retry.
    """
    performed_by = body.performed_by if body is not None else None
    result = await processor.reprocess_order(db, order_id, performed_by=performed_by)
    if result.success:
        return result
    status = 404 if "not found" in (result.error or "") else 409
    return JSONResponse(status_code=status, content=result.model_dump(mode="json"))


@router.patch("/workflows/{workflow_id}")
async def update_workflow(
    workflow_id: uuid.UUID,
    body: WorkflowUpdateRequest,
    db: AsyncSession = Depends(get_db),
    workflow_logger: WorkflowLogger = Depends(get_workflow_logger),
    _admin: str = Depends(require_admin_key),
) -> OperationResult:
    """Apply a partial state update and record the given audit action.

    409 if the update moves the status backwards or out of a terminal
    state, or clears review on a workflow with unresolved errors.
    """
    if (body.step is None) != (body.step_completed is None):
        raise HTTPException(
            status_code=422,
            detail="step and step_completed must be given together",
        )
    update = WorkflowUpdate.model_validate(
        body.model_dump(include=set(WorkflowUpdate.model_fields))
    )
    result = await workflow_logger.update_workflow_state(
        db,
        workflow_id,
        update,
        action=body.action,
        details=body.details,
        performed_by=body.performed_by,
        automated=False,
    )
    if not result.success:
        if "not found" in (result.error or ""):
            raise ValueError(result.error)
        status = 409 if (result.error or "").startswith(UPDATE_REJECTED_PREFIX) else 500
        return JSONResponse(status_code=status, content=result.model_dump(mode="json"))
    return result
