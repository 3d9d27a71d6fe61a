"""Workflow ORM models — per-order pipeline state and its audit trail.

``WorkflowState`` holds one row per source order accepted into the exam
submission pipeline.  The unique constraint on ``source_order_id`` is the
persistence-level idempotency guard: the application checks for an
existing row first, and the constraint catches the race between two
concurrent deliveries of the same webhook.

``WorkflowLog`` rows are append-only and never updated.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wset_db.models.base import Base
from wset_db.models.candidate import WSETCandidate
from wset_db.models.enums import WorkflowAction, WorkflowStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in WorkflowStatus)
_ACTION_VALUES = ", ".join(f"'{a.value}'" for a in WorkflowAction)


def _step_flag() -> Mapped[bool]:
    return mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )


def _step_timestamp() -> Mapped[datetime | None]:
    return mapped_column(TIMESTAMP(timezone=True), nullable=True)


class WorkflowState(Base):
    """One row per source order in the exam submission pipeline."""

    __tablename__ = "wset_workflow_states"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    source_order_id: Mapped[str] = mapped_column(Text, nullable=False)
    wset_candidate_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("wset_candidates.id"),
        nullable=True,
        unique=True,
    )

    # --- Lifecycle ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WorkflowStatus.RECEIVED.value,
        server_default=text("'received'"),
        index=True,
    )

    # --- Step flags: each flag pairs with a timestamp set on completion ---
    step_order_received: Mapped[bool] = _step_flag()
    step_order_received_at: Mapped[datetime | None] = _step_timestamp()
    step_candidate_created: Mapped[bool] = _step_flag()
    step_candidate_created_at: Mapped[datetime | None] = _step_timestamp()
    step_forms_generated: Mapped[bool] = _step_flag()
    step_forms_generated_at: Mapped[datetime | None] = _step_timestamp()
    step_wset_submitted: Mapped[bool] = _step_flag()
    step_wset_submitted_at: Mapped[datetime | None] = _step_timestamp()
    step_wset_confirmed: Mapped[bool] = _step_flag()
    step_wset_confirmed_at: Mapped[datetime | None] = _step_timestamp()
    step_results_received: Mapped[bool] = _step_flag()
    step_results_received_at: Mapped[datetime | None] = _step_timestamp()
    step_certificates_distributed: Mapped[bool] = _step_flag()
    step_certificates_distributed_at: Mapped[datetime | None] = _step_timestamp()

    # --- Manual review ---
    requires_review: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    review_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # --- Error tracking: accumulates, never reset except by reprocess ---
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_error_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    wset_candidate: Mapped[WSETCandidate | None] = relationship()
    logs: Mapped[list["WorkflowLog"]] = relationship(
        back_populates="workflow_state",
        order_by="WorkflowLog.created_at.desc()",
    )

    __table_args__ = (
        # At most one workflow per source order
        Index(
            "uq_workflow_source_order_id", "source_order_id", unique=True
        ),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_workflow_status"),
        CheckConstraint("error_count >= 0", name="ck_error_count_non_negative"),
        Index(
            "ix_workflow_requires_review",
            "requires_review",
            postgresql_where=text("requires_review"),
        ),
        Index("ix_workflow_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<WorkflowState(id={self.id!s}, order={self.source_order_id!r}, "
            f"status={self.status!r}, review={self.requires_review})>"
        )


class WorkflowLog(Base):
    """Append-only audit record for one workflow action."""

    __tablename__ = "wset_workflow_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    workflow_state_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("wset_workflow_states.id"),
        nullable=False,
    )
    # Exam orders live outside this schema, so no foreign key
    exam_order_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    performed_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    automated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    workflow_state: Mapped[WorkflowState] = relationship(back_populates="logs")

    __table_args__ = (
        CheckConstraint(f"action IN ({_ACTION_VALUES})", name="ck_log_action"),
        Index("ix_logs_workflow_created", "workflow_state_id", "created_at"),
        Index("ix_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<WorkflowLog(id={self.id!s}, workflow={self.workflow_state_id!s}, "
            f"action={self.action!r})>"
        )
