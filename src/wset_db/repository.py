"""Async repository for candidates, enrollments, workflow states and logs.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods ``flush()`` but never ``commit()``.

The repository avoids business rules (deadline logic, review flags, step
bookkeeping) — those belong in the ``wset_workflow`` SDK.  It *does*
enforce structural invariants through DB constraints (one workflow per
source order, fixed status/action vocabularies).
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wset_db.models.candidate import Candidate, WSETCandidate
from wset_db.models.enums import WorkflowStatus
from wset_db.models.workflow import WorkflowLog, WorkflowState


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _with_candidate():
    """Loader option: workflow -> enrollment -> person."""
    return selectinload(WorkflowState.wset_candidate).selectinload(
        WSETCandidate.candidate
    )


class WorkflowRepository:
    """Async read/write operations on the workflow tables."""

    # ------------------------------------------------------------------
    # Candidates (person records)
    # ------------------------------------------------------------------

    async def get_candidate_by_email(
        self, db: AsyncSession, email: str
    ) -> Candidate | None:
        """Fetch a person by email, compared lower-cased."""
        stmt = select(Candidate).where(Candidate.email == normalize_email(email))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_candidate(
        self,
        db: AsyncSession,
        *,
        first_name: str,
        last_name: str,
        email: str,
        phone: str | None = None,
        notes: str | None = None,
    ) -> Candidate:
        candidate = Candidate(
            first_name=first_name,
            last_name=last_name,
            email=normalize_email(email),
            phone=phone,
            notes=notes,
        )
        db.add(candidate)
        await db.flush()
        return candidate

    # ------------------------------------------------------------------
    # Enrollments
    # ------------------------------------------------------------------

    async def create_enrollment(
        self,
        db: AsyncSession,
        *,
        candidate_id: uuid.UUID,
        source_order_id: str,
        order_number: str,
        course_type: str,
        course_level: int,
        exam_date: date,
        exam_type: str,
        full_address: str,
        birthdate: str | None = None,
        gender: str | None = None,
    ) -> WSETCandidate:
        enrollment = WSETCandidate(
            candidate_id=candidate_id,
            source_order_id=source_order_id,
            order_number=order_number,
            course_type=course_type,
            course_level=course_level,
            exam_date=exam_date,
            exam_type=exam_type,
            full_address=full_address,
            birthdate=birthdate,
            gender=gender,
        )
        db.add(enrollment)
        await db.flush()
        return enrollment

    # ------------------------------------------------------------------
    # Workflow states: single row
    # ------------------------------------------------------------------

    async def get_workflow(
        self, db: AsyncSession, workflow_state_id: uuid.UUID
    ) -> WorkflowState | None:
        """Fetch a workflow state by primary key, with candidate data."""
        stmt = (
            select(WorkflowState)
            .where(WorkflowState.id == workflow_state_id)
            .options(_with_candidate())
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_workflow_by_order(
        self, db: AsyncSession, source_order_id: str
    ) -> WorkflowState | None:
        """Fetch the workflow for a source order (unique), with candidate data."""
        stmt = (
            select(WorkflowState)
            .where(WorkflowState.source_order_id == source_order_id)
            .options(_with_candidate())
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_workflow(
        self,
        db: AsyncSession,
        *,
        source_order_id: str,
        wset_candidate_id: uuid.UUID | None,
        values: dict[str, Any],
    ) -> WorkflowState:
        """Insert a workflow state row.

        ``values`` carries the initial column values (status, step flags,
        review flag) computed by the SDK.
        """
        workflow = WorkflowState(
            source_order_id=source_order_id,
            wset_candidate_id=wset_candidate_id,
            **values,
        )
        db.add(workflow)
        await db.flush()
        return workflow

    async def update_workflow(
        self,
        db: AsyncSession,
        workflow: WorkflowState,
        values: dict[str, Any],
    ) -> WorkflowState:
        """Apply a partial update of column values to a workflow state."""
        for column, value in values.items():
            setattr(workflow, column, value)
        workflow.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return workflow

    # ------------------------------------------------------------------
    # Workflow states: multiple rows
    # ------------------------------------------------------------------

    async def list_workflows(
        self,
        db: AsyncSession,
        *,
        status: str | None = None,
        requires_review: bool | None = None,
        oldest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[WorkflowState]:
        """List workflow states with candidate data, newest first by default."""
        order = (
            WorkflowState.created_at.asc()
            if oldest_first
            else WorkflowState.created_at.desc()
        )
        stmt = select(WorkflowState).options(_with_candidate()).order_by(order)
        if status is not None:
            stmt = stmt.where(WorkflowState.status == status)
        if requires_review is not None:
            stmt = stmt.where(WorkflowState.requires_review.is_(requires_review))
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_active_workflows(self, db: AsyncSession) -> list[WorkflowState]:
        """List workflows not yet in a terminal state."""
        terminal = [s.value for s in WorkflowStatus.terminal()]
        stmt = (
            select(WorkflowState)
            .where(WorkflowState.status.not_in(terminal))
            .options(_with_candidate())
            .order_by(WorkflowState.created_at.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_workflows_created_between(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[WorkflowState]:
        """Workflows whose ``created_at`` falls in ``[start, end]``."""
        stmt = (
            select(WorkflowState)
            .where(
                WorkflowState.created_at >= start,
                WorkflowState.created_at <= end,
            )
            .order_by(WorkflowState.created_at.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    async def append_log(
        self,
        db: AsyncSession,
        *,
        workflow_state_id: uuid.UUID,
        action: str,
        details: dict[str, Any] | None = None,
        performed_by: str | None = None,
        automated: bool = True,
        exam_order_id: uuid.UUID | None = None,
    ) -> WorkflowLog:
        """Append one audit row.

        Written inside a SAVEPOINT: if the insert fails only the savepoint
        is rolled back and the caller's transaction stays usable.
        """
        entry = WorkflowLog(
            workflow_state_id=workflow_state_id,
            exam_order_id=exam_order_id,
            action=action,
            details=details or {},
            performed_by=performed_by,
            automated=automated,
        )
        async with db.begin_nested():
            db.add(entry)
            await db.flush()
        return entry

    async def list_logs(
        self,
        db: AsyncSession,
        workflow_state_id: uuid.UUID,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WorkflowLog]:
        """Logs for one workflow, newest first."""
        stmt = (
            select(WorkflowLog)
            .where(WorkflowLog.workflow_state_id == workflow_state_id)
            .order_by(WorkflowLog.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_recent_logs(
        self,
        db: AsyncSession,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[WorkflowLog]:
        """Logs across all workflows, newest first, with the parent workflow."""
        stmt = (
            select(WorkflowLog)
            .options(selectinload(WorkflowLog.workflow_state))
            .order_by(WorkflowLog.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
