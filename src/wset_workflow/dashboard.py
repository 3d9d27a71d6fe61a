"""Dashboard aggregation for workflow monitoring.

Deadline validations are recomputed against the reference date on every
call and never cached, so urgency always reflects the current day.
``get_dashboard_data`` degrades to an empty result on any failure: the
dashboard must render even when the store is unavailable.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from wset_db.models.enums import WorkflowStatus, WorkflowStep
from wset_db.models.workflow import WorkflowState
from wset_db.repository import WorkflowRepository

from wset_workflow.constants import RECENT_ACTIVITY_LIMIT, URGENT_DAYS
from wset_workflow.deadline import generate_deadline_summary, validate_deadlines
from wset_workflow.models.dashboard import (
    CandidateSummary,
    DashboardData,
    DashboardStatistics,
    WorkflowStatistics,
    WorkflowSummary,
)
from wset_workflow.models.deadline import WorkflowDeadline
from wset_workflow.workflow_log import WorkflowLogger

logger = logging.getLogger(__name__)

_TERMINAL = {s.value for s in WorkflowStatus.terminal()}


def to_workflow_summary(row: WorkflowState) -> WorkflowSummary:
    """Map an ORM workflow row (with candidate data loaded) to its public view."""
    candidate = None
    enrollment = row.wset_candidate
    if enrollment is not None:
        person = enrollment.candidate
        candidate = CandidateSummary(
            wset_candidate_id=enrollment.id,
            candidate_id=enrollment.candidate_id,
            name=person.full_name if person is not None else "Unknown",
            email=person.email if person is not None else None,
            order_number=enrollment.order_number,
            course_type=enrollment.course_type,
            course_level=enrollment.course_level,
            exam_date=enrollment.exam_date,
            exam_type=enrollment.exam_type,
        )
    return WorkflowSummary(
        id=row.id,
        source_order_id=row.source_order_id,
        status=row.status,
        steps={
            step.value: getattr(row, step.timestamp_column)
            for step in WorkflowStep
            if getattr(row, step.flag_column)
        },
        requires_review=row.requires_review,
        review_reason=row.review_reason,
        error_count=row.error_count or 0,
        last_error=row.last_error,
        last_error_at=row.last_error_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        candidate=candidate,
    )


def validate_workflow(summary: WorkflowSummary, as_of: date) -> WorkflowDeadline | None:
    """Fresh deadline validation for an active workflow with a candidate."""
    candidate = summary.candidate
    if candidate is None or summary.status in _TERMINAL:
        return None
    validation = validate_deadlines(
        candidate.exam_date, candidate.exam_type, candidate.course_level, as_of,
    )
    return WorkflowDeadline(
        **validation.model_dump(),
        workflow_state_id=summary.id,
        candidate_name=candidate.name,
        order_number=candidate.order_number,
        course_type=candidate.course_type,
    )


def _round_half_up(value: float) -> int:
    # round() would send 12.5 to 12
    return math.floor(value + 0.5)


def compute_statistics(
    workflows: Iterable[WorkflowSummary],
    validations: Iterable[WorkflowDeadline],
) -> DashboardStatistics:
    workflows = list(workflows)
    validations = list(validations)
    return DashboardStatistics(
        total_workflows=len(workflows),
        active_workflows=sum(1 for w in workflows if w.status not in _TERMINAL),
        completed_workflows=sum(
            1 for w in workflows if w.status == WorkflowStatus.COMPLETED.value
        ),
        error_workflows=sum(
            1 for w in workflows
            if w.status == WorkflowStatus.ERROR.value or w.error_count > 0
        ),
        urgent_deadlines=sum(
            1 for v in validations
            if v.working_days_remaining <= URGENT_DAYS and not v.errors
        ),
        overdue_submissions=sum(1 for v in validations if v.errors),
    )


class DashboardService:
    """Read-side aggregation over workflow states and the audit log."""

    def __init__(
        self,
        repository: WorkflowRepository | None = None,
        workflow_logger: WorkflowLogger | None = None,
    ) -> None:
        self._repo = repository or WorkflowRepository()
        self._log = workflow_logger or WorkflowLogger(self._repo)

    async def get_dashboard_data(
        self,
        db: AsyncSession,
        *,
        as_of: date | None = None,
        activity_limit: int = RECENT_ACTIVITY_LIMIT,
    ) -> DashboardData:
        """Workflows, live deadline validations, recent activity and counts.

        Never raises; on failure returns an empty result with ``error`` set.
        """
        today = as_of or date.today()
        try:
            rows = await self._repo.list_workflows(db)
            workflows = [to_workflow_summary(row) for row in rows]
            activity = await self._log.get_recent_activity(db, limit=activity_limit)

            validations: list[WorkflowDeadline] = []
            for summary in workflows:
                try:
                    validation = validate_workflow(summary, today)
                except ValueError as exc:
                    # Bad stored exam data should not hide the other workflows
                    logger.error(
                        "Failed to validate deadline for workflow %s: %s",
                        summary.id, exc,
                    )
                    continue
                if validation is not None:
                    validations.append(validation)

            return DashboardData(
                workflow_states=workflows,
                deadline_validations=validations,
                deadline_summary=generate_deadline_summary(validations),
                recent_activity=activity,
                statistics=compute_statistics(workflows, validations),
            )
        except Exception as exc:
            logger.exception("Dashboard data fetch error")
            return DashboardData(error=str(exc) or exc.__class__.__name__)

    async def get_workflows_requiring_review(
        self, db: AsyncSession
    ) -> list[WorkflowSummary]:
        """Workflows flagged for manual review, oldest first."""
        rows = await self._repo.list_workflows(
            db, requires_review=True, oldest_first=True,
        )
        return [to_workflow_summary(row) for row in rows]

    async def get_workflows_by_status(
        self,
        db: AsyncSession,
        status: WorkflowStatus | str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[WorkflowSummary]:
        """Workflows in ``status``, newest first.

        Raises:
            ValueError: if ``status`` is not a workflow status
        """
        status = WorkflowStatus(status)
        rows = await self._repo.list_workflows(
            db, status=status.value, limit=limit, offset=offset,
        )
        return [to_workflow_summary(row) for row in rows]

    async def get_workflow_statistics(
        self,
        db: AsyncSession,
        start: datetime,
        end: datetime,
    ) -> WorkflowStatistics:
        """Throughput and error figures for workflows created in ``[start, end]``.

        Never raises; on failure returns zeros with ``error`` set.
        """
        try:
            rows = await self._repo.list_workflows_created_between(db, start, end)
        except Exception as exc:
            logger.exception("Statistics calculation error")
            return WorkflowStatistics(error=str(exc) or exc.__class__.__name__)

        received = len(rows)
        forms = sum(1 for w in rows if w.step_forms_generated)
        submitted = sum(1 for w in rows if w.step_wset_submitted)
        errors = sum(1 for w in rows if (w.error_count or 0) > 0)

        durations = [
            (w.step_wset_submitted_at - w.created_at).total_seconds()
            for w in rows
            if w.status == WorkflowStatus.COMPLETED.value and w.step_wset_submitted_at
        ]
        average_hours = _round_half_up(sum(durations) / len(durations) / 3600) if durations else 0
        error_rate = _round_half_up(errors / received * 100) if received else 0

        return WorkflowStatistics(
            orders_received=received,
            forms_generated=forms,
            submissions_completed=submitted,
            average_processing_time=average_hours,
            error_rate=error_rate,
        )
