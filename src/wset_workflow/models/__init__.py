"""Pydantic models for the WSET workflow SDK."""

from wset_workflow.models.dashboard import (
    ActivityEntry,
    CandidateSummary,
    DashboardData,
    DashboardStatistics,
    WorkflowStatistics,
    WorkflowSummary,
)
from wset_workflow.models.deadline import (
    DeadlineSummary,
    DeadlineValidation,
    WorkflowDeadline,
)
from wset_workflow.models.order import (
    Address,
    FormSubmission,
    LineItem,
    Money,
    SquarespaceOrder,
)
from wset_workflow.models.results import (
    OperationResult,
    OrderProcessingResult,
    WorkflowLogEntry,
    WorkflowUpdate,
)

__all__ = [
    "ActivityEntry",
    "Address",
    "CandidateSummary",
    "DashboardData",
    "DashboardStatistics",
    "DeadlineSummary",
    "DeadlineValidation",
    "FormSubmission",
    "LineItem",
    "Money",
    "OperationResult",
    "OrderProcessingResult",
    "SquarespaceOrder",
    "WorkflowDeadline",
    "WorkflowLogEntry",
    "WorkflowStatistics",
    "WorkflowSummary",
    "WorkflowUpdate",
]
