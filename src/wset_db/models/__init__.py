"""ORM models for wset_db."""

from wset_db.models.base import Base
from wset_db.models.candidate import Candidate, WSETCandidate
from wset_db.models.enums import ExamType, WorkflowAction, WorkflowStatus, WorkflowStep
from wset_db.models.workflow import WorkflowLog, WorkflowState

__all__ = [
    "Base",
    "Candidate",
    "WSETCandidate",
    "WorkflowState",
    "WorkflowLog",
    "ExamType",
    "WorkflowAction",
    "WorkflowStatus",
    "WorkflowStep",
]
