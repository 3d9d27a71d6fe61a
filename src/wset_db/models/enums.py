"""Database-level enumerations for the WSET exam workflow."""

import enum


class ExamType(str, enum.Enum):
    """Exam modality.

    ``PDF`` is the in-person, paper-based proctored sitting (not the file
    format); ``RI`` is Remote Invigilation.
    """

    PDF = "PDF"
    RI = "RI"


class WorkflowStatus(str, enum.Enum):
    """Lifecycle states for one order's workflow.

    Transitions:
        received -> processing -> forms_generated -> submitted
            -> confirmed -> completed
        any non-terminal state -> error
        error -> processing  (manual reprocess)
    """

    RECEIVED = "received"
    PROCESSING = "processing"
    FORMS_GENERATED = "forms_generated"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    ERROR = "error"

    @classmethod
    def terminal(cls) -> frozenset["WorkflowStatus"]:
        return frozenset({cls.COMPLETED, cls.ERROR})

    def can_transition_to(self, target: "WorkflowStatus") -> bool:
        """Whether a state update may move a workflow from here to ``target``.

        Forward moves along the pipeline may skip states (a step can be
        recorded late).  Nothing leaves a terminal state through an update;
        ``error -> processing`` goes through reprocessing only.
        """
        target = WorkflowStatus(target)
        if target is self:
            return True
        if self in WorkflowStatus.terminal():
            return False
        if target is WorkflowStatus.ERROR:
            return True
        return _PIPELINE.index(target) > _PIPELINE.index(self)


_PIPELINE: tuple[WorkflowStatus, ...] = (
    WorkflowStatus.RECEIVED,
    WorkflowStatus.PROCESSING,
    WorkflowStatus.FORMS_GENERATED,
    WorkflowStatus.SUBMITTED,
    WorkflowStatus.CONFIRMED,
    WorkflowStatus.COMPLETED,
)


class WorkflowStep(str, enum.Enum):
    """Pipeline steps, each backed by a ``step_<value>`` / ``step_<value>_at``
    column pair on ``wset_workflow_states``."""

    ORDER_RECEIVED = "order_received"
    CANDIDATE_CREATED = "candidate_created"
    FORMS_GENERATED = "forms_generated"
    WSET_SUBMITTED = "wset_submitted"
    WSET_CONFIRMED = "wset_confirmed"
    RESULTS_RECEIVED = "results_received"
    CERTIFICATES_DISTRIBUTED = "certificates_distributed"

    @property
    def flag_column(self) -> str:
        return f"step_{self.value}"

    @property
    def timestamp_column(self) -> str:
        return f"step_{self.value}_at"


class WorkflowAction(str, enum.Enum):
    """Fixed vocabulary for audit log entries."""

    ORDER_RECEIVED = "order_received"
    CANDIDATE_CREATED = "candidate_created"
    FORMS_GENERATED = "forms_generated"
    WSET_SUBMITTED = "wset_submitted"
    WSET_CONFIRMED = "wset_confirmed"
    RESULTS_RECEIVED = "results_received"
    CERTIFICATES_DISTRIBUTED = "certificates_distributed"
    MANUAL_REVIEW_STARTED = "manual_review_started"
    MANUAL_REVIEW_COMPLETED = "manual_review_completed"
    PROCESSING_ERROR = "processing_error"
    ERROR_RESOLVED = "error_resolved"
    WORKFLOW_RESTARTED = "workflow_restarted"
    DEADLINE_WARNING = "deadline_warning"
    COMPLIANCE_CHECK = "compliance_check"
