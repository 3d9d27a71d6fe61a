"""wset_db — PostgreSQL persistence layer for the WSET exam workflow.

This package provides the ORM models, async engine factory, and repository
for candidates, course enrollments, workflow states and the audit log.  It
is consumed by the ``wset_workflow`` SDK and the FastAPI server.
"""

from wset_db.engine import get_engine, get_session_factory, session_scope
from wset_db.models.candidate import Candidate, WSETCandidate
from wset_db.models.enums import ExamType, WorkflowAction, WorkflowStatus, WorkflowStep
from wset_db.models.workflow import WorkflowLog, WorkflowState
from wset_db.repository import WorkflowRepository

__all__ = [
    "Candidate",
    "WSETCandidate",
    "WorkflowState",
    "WorkflowLog",
    "ExamType",
    "WorkflowAction",
    "WorkflowStatus",
    "WorkflowStep",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "WorkflowRepository",
]
