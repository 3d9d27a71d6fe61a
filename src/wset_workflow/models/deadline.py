"""Deadline validation models — the validator's output contract.

Validations are derived values: they are recomputed against the current
date whenever they are needed and never persisted.
"""

import uuid
from datetime import date

from pydantic import BaseModel, Field

from wset_db.models.enums import ExamType


class DeadlineValidation(BaseModel):
    """Outcome of checking one exam sitting against the submission rules.

    ``warnings`` are advisories that never block submission; ``errors``
    mean the order can no longer be submitted to the exam board.
    """

    exam_date: date
    exam_type: ExamType
    level: int
    submission_deadline: date
    # Only set for the level 1 in-person late window
    late_deadline: date | None = None
    working_days_remaining: int = Field(ge=0)
    is_compliant: bool
    can_submit_late: bool
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class WorkflowDeadline(DeadlineValidation):
    """A validation tied back to the workflow it was computed for."""

    workflow_state_id: uuid.UUID
    candidate_name: str
    order_number: str
    course_type: str


class DeadlineSummary(BaseModel):
    """Validations bucketed by urgency for dashboard display.

    Buckets are mutually exclusive and checked in order: overdue (has
    errors), urgent, warning, compliant.
    """

    overdue: list[DeadlineValidation] = Field(default_factory=list)
    urgent: list[DeadlineValidation] = Field(default_factory=list)
    warning: list[DeadlineValidation] = Field(default_factory=list)
    compliant: list[DeadlineValidation] = Field(default_factory=list)
