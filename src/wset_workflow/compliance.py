"""Compliance sweep — re-checks active workflows against today's date.

A workflow accepted weeks ago drifts towards its submission deadline
without any new event touching it.  The sweep re-validates every active
workflow and raises ``requires_review`` wherever the deadline is within
the approaching window, already missed, or the workflow has recorded
errors.  Workflows already flagged are left alone.
"""

from __future__ import annotations

import logging
from datetime import date

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from wset_db.models.enums import WorkflowAction
from wset_db.repository import WorkflowRepository

from wset_workflow.constants import APPROACHING_DAYS
from wset_workflow.dashboard import to_workflow_summary, validate_workflow
from wset_workflow.models.results import WorkflowUpdate
from wset_workflow.workflow_log import WorkflowLogger

logger = logging.getLogger(__name__)


class ComplianceReport(BaseModel):
    checked: int = 0
    flagged: int = 0
    overdue: int = 0
    failed: int = 0


def review_reason(validation, error_count: int) -> str | None:
    """Why a workflow needs review, or ``None`` if it does not."""
    if validation.errors:
        return "; ".join(validation.errors)
    if validation.working_days_remaining <= APPROACHING_DAYS:
        return (
            f"Submission deadline {validation.submission_deadline.isoformat()} "
            f"is {validation.working_days_remaining} working days away"
        )
    if error_count > 0:
        return f"Workflow has {error_count} recorded error(s)"
    return None


async def run_compliance_check(
    db: AsyncSession,
    *,
    as_of: date | None = None,
    repository: WorkflowRepository | None = None,
    workflow_logger: WorkflowLogger | None = None,
) -> ComplianceReport:
    """Flag active workflows that need review.  The caller commits."""
    repo = repository or WorkflowRepository()
    log = workflow_logger or WorkflowLogger(repo)
    today = as_of or date.today()
    report = ComplianceReport()

    for row in await repo.list_active_workflows(db):
        summary = to_workflow_summary(row)
        validation = validate_workflow(summary, today)
        if validation is None:
            continue
        report.checked += 1
        if validation.errors:
            report.overdue += 1
        if summary.requires_review:
            continue

        reason = review_reason(validation, summary.error_count)
        if reason is None:
            continue

        result = await log.update_workflow_state(
            db,
            summary.id,
            WorkflowUpdate(requires_review=True, review_reason=reason),
            action=WorkflowAction.DEADLINE_WARNING,
            details={
                "submission_deadline": validation.submission_deadline.isoformat(),
                "working_days_remaining": validation.working_days_remaining,
                "errors": validation.errors,
                "checked_on": today.isoformat(),
            },
        )
        if result.success:
            report.flagged += 1
        else:
            report.failed += 1
            logger.error("Could not flag workflow %s: %s", summary.id, result.error)

    logger.info(
        "Compliance check %s: checked=%d flagged=%d overdue=%d failed=%d",
        today.isoformat(), report.checked, report.flagged, report.overdue, report.failed,
    )
    return report
