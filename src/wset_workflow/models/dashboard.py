"""Dashboard and query models — the read-side contract for the UI.

Decoupled from the ORM models in ``wset_db`` so consumers never see
database internals.
"""

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from wset_workflow.models.deadline import DeadlineSummary, WorkflowDeadline


class CandidateSummary(BaseModel):
    """Enrollment and person fields shown next to a workflow."""

    wset_candidate_id: uuid.UUID
    candidate_id: uuid.UUID
    name: str
    email: str | None = None
    order_number: str
    course_type: str
    course_level: int
    exam_date: date
    exam_type: str


class WorkflowSummary(BaseModel):
    """Public view of one workflow state."""

    id: uuid.UUID
    source_order_id: str
    status: str
    # step name -> completion timestamp (None when not completed)
    steps: dict[str, datetime | None] = Field(default_factory=dict)
    requires_review: bool
    review_reason: str | None = None
    error_count: int = 0
    last_error: str | None = None
    last_error_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    candidate: CandidateSummary | None = None


class ActivityEntry(BaseModel):
    """One audit log row, with the parent workflow's summary fields."""

    id: uuid.UUID
    workflow_state_id: uuid.UUID
    exam_order_id: uuid.UUID | None = None
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    performed_by: str | None = None
    automated: bool = True
    created_at: datetime
    source_order_id: str | None = None
    workflow_status: str | None = None


class DashboardStatistics(BaseModel):
    total_workflows: int = 0
    active_workflows: int = 0
    completed_workflows: int = 0
    error_workflows: int = 0
    urgent_deadlines: int = 0
    overdue_submissions: int = 0


class DashboardData(BaseModel):
    """Everything the workflow dashboard renders.

    ``error`` is set when aggregation failed; all other fields are then
    empty or zero.
    """

    workflow_states: list[WorkflowSummary] = Field(default_factory=list)
    deadline_validations: list[WorkflowDeadline] = Field(default_factory=list)
    deadline_summary: DeadlineSummary = Field(default_factory=DeadlineSummary)
    recent_activity: list[ActivityEntry] = Field(default_factory=list)
    statistics: DashboardStatistics = Field(default_factory=DashboardStatistics)
    error: str | None = None


class WorkflowStatistics(BaseModel):
    """Throughput figures for workflows created in a date range."""

    orders_received: int = 0
    forms_generated: int = 0
    submissions_completed: int = 0
    # Mean hours from creation to exam-board submission, completed only
    average_processing_time: int = 0
    # Percentage of workflows with at least one error
    error_rate: int = 0
    error: str | None = None
