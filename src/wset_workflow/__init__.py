"""wset_workflow — WSET exam submission workflow SDK.

Public API:
    OrderProcessor        — accepts storefront orders into the pipeline
    WorkflowLogger        — audit trail and workflow state transitions
    DashboardService      — dashboard aggregation and workflow queries
    validate_deadlines    — checks an exam sitting against submission rules
    can_submit_today      — whether an exam can still be submitted
    get_next_submission_date — latest legal submission date
    generate_deadline_summary — buckets validations by urgency
    count_working_days / add_working_days — Mon-Fri date arithmetic

Extraction:
    CourseExtractor       — ABC for recovering course details from an order
    KeywordCourseExtractor — default keyword-based implementation
"""

from wset_workflow.compliance import ComplianceReport, run_compliance_check
from wset_workflow.dashboard import DashboardService
from wset_workflow.deadline import (
    can_submit_today,
    generate_deadline_summary,
    get_next_submission_date,
    validate_deadlines,
)
from wset_workflow.extractor import KeywordCourseExtractor
from wset_workflow.interfaces import CourseExtractor, CourseInfo
from wset_workflow.models import (
    DashboardData,
    DeadlineValidation,
    OperationResult,
    OrderProcessingResult,
    SquarespaceOrder,
    WorkflowLogEntry,
    WorkflowUpdate,
)
from wset_workflow.processor import OrderProcessor
from wset_workflow.workflow_log import WorkflowLogger, create_log_entry
from wset_workflow.working_days import add_working_days, count_working_days

__all__ = [
    "OrderProcessor",
    "WorkflowLogger",
    "DashboardService",
    "ComplianceReport",
    "run_compliance_check",
    "validate_deadlines",
    "can_submit_today",
    "get_next_submission_date",
    "generate_deadline_summary",
    "count_working_days",
    "add_working_days",
    "create_log_entry",
    "CourseExtractor",
    "CourseInfo",
    "KeywordCourseExtractor",
    "DashboardData",
    "DeadlineValidation",
    "OperationResult",
    "OrderProcessingResult",
    "SquarespaceOrder",
    "WorkflowLogEntry",
    "WorkflowUpdate",
]
