"""Create candidate, enrollment, workflow state and workflow log tables.

Initial migration for the WSET exam submission workflow.

Revision ID: 20261001_workflow
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261001_workflow"
down_revision = None
branch_labels = None
depends_on = None

_STEPS = [
    "order_received",
    "candidate_created",
    "forms_generated",
    "wset_submitted",
    "wset_confirmed",
    "results_received",
    "certificates_distributed",
]

_STATUSES = [
    "received",
    "processing",
    "forms_generated",
    "submitted",
    "confirmed",
    "completed",
    "error",
]

_ACTIONS = [
    "order_received",
    "candidate_created",
    "forms_generated",
    "wset_submitted",
    "wset_confirmed",
    "results_received",
    "certificates_distributed",
    "manual_review_started",
    "manual_review_completed",
    "processing_error",
    "error_resolved",
    "workflow_restarted",
    "deadline_warning",
    "compliance_check",
]


def _in_list(column: str, values: list[str]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # --- Person records ---
    op.create_table(
        "candidates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("first_name", sa.Text, nullable=False),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=False, unique=True),
        sa.Column("phone", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )

    # --- Course enrollments ---
    op.create_table(
        "wset_candidates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "candidate_id",
            UUID(as_uuid=True),
            sa.ForeignKey("candidates.id"),
            nullable=False,
        ),
        sa.Column("source_order_id", sa.Text, nullable=False),
        sa.Column("order_number", sa.Text, nullable=False),
        sa.Column("course_type", sa.Text, nullable=False),
        sa.Column("course_level", sa.SmallInteger, nullable=False),
        sa.Column("exam_date", sa.Date, nullable=False),
        sa.Column("exam_type", sa.String(3), nullable=False),
        sa.Column("birthdate", sa.Text, nullable=True),
        sa.Column("gender", sa.Text, nullable=True),
        sa.Column("full_address", sa.Text, nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "course_level BETWEEN 1 AND 4", name="ck_course_level_range"
        ),
        sa.CheckConstraint("exam_type IN ('PDF', 'RI')", name="ck_exam_type"),
    )
    op.create_index(
        "ix_wset_candidates_candidate_id", "wset_candidates", ["candidate_id"]
    )
    op.create_index(
        "ix_wset_candidates_source_order_id", "wset_candidates", ["source_order_id"]
    )
    op.create_index("ix_wset_candidates_exam_date", "wset_candidates", ["exam_date"])

    # --- Workflow states ---
    step_columns = []
    for step in _STEPS:
        step_columns.append(
            sa.Column(
                f"step_{step}",
                sa.Boolean,
                nullable=False,
                server_default=sa.text("false"),
            )
        )
        step_columns.append(
            sa.Column(f"step_{step}_at", TIMESTAMP(timezone=True), nullable=True)
        )

    op.create_table(
        "wset_workflow_states",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("source_order_id", sa.Text, nullable=False),
        sa.Column(
            "wset_candidate_id",
            UUID(as_uuid=True),
            sa.ForeignKey("wset_candidates.id"),
            nullable=True,
            unique=True,
        ),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'received'"),
        ),
        *step_columns,
        sa.Column(
            "requires_review",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("review_reason", sa.Text, nullable=True),
        sa.Column("reviewed_by", sa.Text, nullable=True),
        sa.Column("reviewed_at", TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "error_count",
            sa.Integer,
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("last_error_at", TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(_in_list("status", _STATUSES), name="ck_workflow_status"),
        sa.CheckConstraint("error_count >= 0", name="ck_error_count_non_negative"),
    )
    op.create_index(
        "uq_workflow_source_order_id",
        "wset_workflow_states",
        ["source_order_id"],
        unique=True,
    )
    op.create_index(
        "ix_wset_workflow_states_status", "wset_workflow_states", ["status"]
    )
    op.create_index(
        "ix_workflow_requires_review",
        "wset_workflow_states",
        ["requires_review"],
        postgresql_where=sa.text("requires_review"),
    )
    op.create_index(
        "ix_workflow_created_at", "wset_workflow_states", ["created_at"]
    )

    # --- Audit log ---
    op.create_table(
        "wset_workflow_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "workflow_state_id",
            UUID(as_uuid=True),
            sa.ForeignKey("wset_workflow_states.id"),
            nullable=False,
        ),
        sa.Column("exam_order_id", UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column(
            "details",
            JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("performed_by", sa.Text, nullable=True),
        sa.Column(
            "automated",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(_in_list("action", _ACTIONS), name="ck_log_action"),
    )
    op.create_index(
        "ix_logs_workflow_created",
        "wset_workflow_logs",
        ["workflow_state_id", "created_at"],
    )
    op.create_index("ix_logs_created_at", "wset_workflow_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("wset_workflow_logs")
    op.drop_table("wset_workflow_states")
    op.drop_table("wset_candidates")
    op.drop_table("candidates")
