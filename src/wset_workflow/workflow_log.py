"""Workflow audit trail and state transitions.

The audit log is append-only.  Writing to it is best-effort: a failed
insert is logged locally and reported through ``OperationResult`` but
never raised, so auditing cannot break the workflow step it records.

State updates go through ``update_workflow_state`` so the step-flag /
timestamp pairing, the status transition rules and the review invariant
(a workflow with errors always requires review) are applied in one place.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from wset_db.models.enums import WorkflowAction, WorkflowStatus
from wset_db.models.workflow import WorkflowLog, WorkflowState
from wset_db.repository import WorkflowRepository

from wset_workflow.models.dashboard import ActivityEntry
from wset_workflow.models.results import (
    OperationResult,
    WorkflowLogEntry,
    WorkflowUpdate,
)

logger = logging.getLogger(__name__)

UPDATE_REJECTED_PREFIX = "Update rejected"


def create_log_entry(
    action: WorkflowAction | str,
    workflow_state_id: uuid.UUID,
    details: dict[str, Any] | None = None,
    *,
    exam_order_id: uuid.UUID | None = None,
    performed_by: str | None = None,
    automated: bool = True,
) -> WorkflowLogEntry:
    """Build a log entry from the fixed action vocabulary.

    Raises:
        ValueError: if ``action`` is not a known workflow action
    """
    return WorkflowLogEntry(
        workflow_state_id=workflow_state_id,
        action=WorkflowAction(action),
        details=details or {},
        exam_order_id=exam_order_id,
        performed_by=performed_by,
        automated=automated,
    )


class UpdateRejected(ValueError):
    """A workflow update that would break a state invariant."""


def build_update_values(
    update: WorkflowUpdate,
    *,
    current_status: WorkflowStatus | str | None = None,
    current_error_count: int = 0,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Translate a ``WorkflowUpdate`` into column values.

    Raises:
        UpdateRejected: if the status move is not allowed from
            ``current_status``, or the update clears review on a workflow
            that still has unresolved errors
    """
    now = now or datetime.now(timezone.utc)
    values: dict[str, Any] = {}

    if update.status is not None:
        if current_status is not None:
            current = WorkflowStatus(current_status)
            if not current.can_transition_to(update.status):
                raise UpdateRejected(
                    f"{UPDATE_REJECTED_PREFIX}: invalid status transition "
                    f"{current.value} -> {update.status.value}"
                )
        values["status"] = update.status.value

    error_count = current_error_count
    if update.resolve_errors:
        error_count = 0
        values["error_count"] = 0
        values["last_error"] = None
        values["last_error_at"] = None

    if update.requires_review is False and error_count > 0 and not update.error:
        raise UpdateRejected(
            f"{UPDATE_REJECTED_PREFIX}: cannot clear review while "
            f"{error_count} error(s) are unresolved"
        )

    if update.step is not None and update.step_completed is not None:
        values[update.step.flag_column] = update.step_completed
        values[update.step.timestamp_column] = now if update.step_completed else None

    if update.requires_review is not None:
        values["requires_review"] = update.requires_review
        values["review_reason"] = update.review_reason if update.requires_review else None

    if update.reviewed_by is not None:
        values["reviewed_by"] = update.reviewed_by
        values["reviewed_at"] = now

    if update.error:
        values["error_count"] = error_count + 1
        values["last_error"] = update.error
        values["last_error_at"] = now
        # A workflow with errors always needs a human to look at it
        values["requires_review"] = True
        if not values.get("review_reason"):
            values["review_reason"] = update.error

    return values


def to_activity_entry(row: WorkflowLog, workflow: WorkflowState | None = None) -> ActivityEntry:
    return ActivityEntry(
        id=row.id,
        workflow_state_id=row.workflow_state_id,
        exam_order_id=row.exam_order_id,
        action=row.action,
        details=row.details or {},
        performed_by=row.performed_by,
        automated=row.automated,
        created_at=row.created_at,
        source_order_id=workflow.source_order_id if workflow is not None else None,
        workflow_status=workflow.status if workflow is not None else None,
    )


class WorkflowLogger:
    """Records workflow actions and applies workflow state transitions."""

    def __init__(self, repository: WorkflowRepository | None = None) -> None:
        self._repo = repository or WorkflowRepository()

    # ==================================================================
    # Writes
    # ==================================================================

    async def log_action(
        self, db: AsyncSession, entry: WorkflowLogEntry
    ) -> OperationResult:
        """Append one audit record.  Never raises."""
        try:
            await self._repo.append_log(
                db,
                workflow_state_id=entry.workflow_state_id,
                action=entry.action.value,
                details=entry.details,
                performed_by=entry.performed_by,
                automated=entry.automated,
                exam_order_id=entry.exam_order_id,
            )
        except Exception as exc:
            logger.exception(
                "Failed to log workflow action %s for %s",
                entry.action.value, entry.workflow_state_id,
            )
            return OperationResult(success=False, error=str(exc))
        return OperationResult(success=True)

    async def update_workflow_state(
        self,
        db: AsyncSession,
        workflow_state_id: uuid.UUID,
        update: WorkflowUpdate,
        *,
        action: WorkflowAction | None = None,
        details: dict[str, Any] | None = None,
        performed_by: str | None = None,
        automated: bool = True,
    ) -> OperationResult:
        """Apply a partial update, then append a correlated log entry.

        The log entry is only written when ``action`` is given and the
        update succeeded.  A failed log write does not fail the update.
        """
        try:
            workflow = await self._repo.get_workflow(db, workflow_state_id)
            if workflow is None:
                return OperationResult(
                    success=False,
                    error=f"Workflow state not found: {workflow_state_id}",
                )
            values = build_update_values(
                update,
                current_status=workflow.status,
                current_error_count=workflow.error_count or 0,
            )
            await self._repo.update_workflow(db, workflow, values)
        except UpdateRejected as exc:
            logger.warning("Workflow %s: %s", workflow_state_id, exc)
            return OperationResult(success=False, error=str(exc))
        except Exception as exc:
            logger.exception("Failed to update workflow state %s", workflow_state_id)
            return OperationResult(success=False, error=str(exc))

        if action is not None:
            await self.log_action(
                db,
                create_log_entry(
                    action,
                    workflow_state_id,
                    details,
                    performed_by=performed_by,
                    automated=automated,
                ),
            )
        return OperationResult(success=True)

    # ==================================================================
    # Queries
    # ==================================================================

    async def get_workflow_logs(
        self,
        db: AsyncSession,
        workflow_state_id: uuid.UUID,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ActivityEntry]:
        """Audit trail for one workflow, newest first."""
        rows = await self._repo.list_logs(
            db, workflow_state_id, limit=limit, offset=offset,
        )
        return [to_activity_entry(row) for row in rows]

    async def get_recent_activity(
        self,
        db: AsyncSession,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ActivityEntry]:
        """Audit records across all workflows, newest first."""
        rows = await self._repo.list_recent_logs(db, limit=limit, offset=offset)
        return [to_activity_entry(row, row.workflow_state) for row in rows]
