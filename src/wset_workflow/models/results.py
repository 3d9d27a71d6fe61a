"""Result and request models for workflow operations.

Core operations report failures through these models instead of raising,
so request handlers and tests can inspect them directly.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from wset_db.models.enums import WorkflowAction, WorkflowStatus, WorkflowStep


class OrderProcessingResult(BaseModel):
    """Outcome of ``process_order`` / ``reprocess_order``."""

    success: bool
    candidate_id: uuid.UUID | None = None
    workflow_state_id: uuid.UUID | None = None
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)


class OperationResult(BaseModel):
    """Outcome of a best-effort write (audit log, state update)."""

    success: bool
    error: str | None = None


class WorkflowLogEntry(BaseModel):
    """One audit record to append."""

    workflow_state_id: uuid.UUID
    action: WorkflowAction
    details: dict[str, Any] = Field(default_factory=dict)
    exam_order_id: uuid.UUID | None = None
    performed_by: str | None = None
    automated: bool = True


class WorkflowUpdate(BaseModel):
    """Partial update to a workflow state.

    ``step`` and ``step_completed`` go together: the step flag is set to
    ``step_completed`` and its timestamp is set (true) or cleared (false).
    ``error`` increments the error counter and records the message.
    ``resolve_errors`` resets the counter first; review can only be
    cleared on a workflow whose errors are resolved.
    """

    status: WorkflowStatus | None = None
    step: WorkflowStep | None = None
    step_completed: bool | None = None
    requires_review: bool | None = None
    review_reason: str | None = None
    reviewed_by: str | None = None
    error: str | None = None
    resolve_errors: bool = False
