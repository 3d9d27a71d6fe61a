"""OrderProcessor — turns a storefront order into an exam-board workflow.

Stateless processor pattern: each call reads what it needs from the
database, writes the new rows, and returns a structured result.  The
caller supplies the ``AsyncSession`` and owns the transaction.

Processing steps (each must succeed before the next runs):

    1. idempotency check   — an order id already in the pipeline is a replay
    2. course extraction   — level + modality from the line items
    3. exam date           — checkout form answer, else an 8-week default
    4. deadline validation — any validator error rejects the order
    5. address             — billing, else shipping
    6. person record       — reuse by email, else create
    7. enrollment record
    8. workflow state      — status ``received``

Steps 1-5 only read, so a rejection there leaves nothing behind.  A
failure in steps 6-8 rolls the transaction back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wset_db.models.enums import WorkflowAction, WorkflowStatus, WorkflowStep
from wset_db.models.workflow import WorkflowState
from wset_db.repository import WorkflowRepository

from wset_workflow.constants import APPROACHING_DAYS, DEFAULT_EXAM_OFFSET_DAYS
from wset_workflow.deadline import validate_deadlines
from wset_workflow.extractor import (
    KeywordCourseExtractor,
    format_address,
    resolve_exam_date,
)
from wset_workflow.interfaces import CourseExtractor
from wset_workflow.models.order import SquarespaceOrder
from wset_workflow.models.results import OrderProcessingResult
from wset_workflow.workflow_log import WorkflowLogger, create_log_entry

logger = logging.getLogger(__name__)

ALREADY_PROCESSED_WARNING = "Order was already processed"
DEFAULT_DATE_WARNING = (
    f"No exam date supplied - defaulted to {DEFAULT_EXAM_OFFSET_DAYS} days "
    f"after the order date; confirm the exam date with the candidate"
)


def _failure(error: str) -> OrderProcessingResult:
    return OrderProcessingResult(success=False, error=error)


def _replay_result(workflow: WorkflowState) -> OrderProcessingResult:
    enrollment = workflow.wset_candidate
    return OrderProcessingResult(
        success=True,
        workflow_state_id=workflow.id,
        candidate_id=enrollment.candidate_id if enrollment is not None else None,
        warnings=[ALREADY_PROCESSED_WARNING],
    )


class OrderProcessor:
    """Converts storefront orders into candidate + workflow-state records.

    Args:
        extractor: course extractor; defaults to :class:`KeywordCourseExtractor`
        repository: persistence gateway; defaults to :class:`WorkflowRepository`
        workflow_logger: audit logger sharing the same repository
    """

    def __init__(
        self,
        extractor: CourseExtractor | None = None,
        repository: WorkflowRepository | None = None,
        workflow_logger: WorkflowLogger | None = None,
    ) -> None:
        self._extractor = extractor or KeywordCourseExtractor()
        self._repo = repository or WorkflowRepository()
        self._log = workflow_logger or WorkflowLogger(self._repo)

    # ==================================================================
    # Public API
    # ==================================================================

    async def process_order(
        self,
        db: AsyncSession,
        order: SquarespaceOrder,
        *,
        as_of: date | None = None,
    ) -> OrderProcessingResult:
        """Accept an order into the exam submission pipeline.

        Idempotent per ``order.id``: a replayed order returns success with
        the existing workflow and creates nothing.  Never raises.
        """
        logger.info("Processing order %s (%s)", order.order_number, order.id)
        try:
            return await self._process(db, order, as_of or date.today())
        except Exception as exc:
            logger.exception("Order processing error for %s", order.order_number)
            await self._rollback(db)
            return _failure(str(exc) or "Unknown processing error")

    async def reprocess_order(
        self,
        db: AsyncSession,
        source_order_id: str,
        *,
        performed_by: str | None = None,
    ) -> OrderProcessingResult:
        """Put a failed workflow back into ``processing`` for another attempt.

        Accepts ``error`` workflows and live workflows with recorded errors;
        a completed workflow is never reopened.  A live workflow already past
        ``processing`` keeps its status.  Clears the error counters but keeps
        the stored candidate data; extraction is not re-run.
        """
        try:
            workflow = await self._repo.get_workflow_by_order(db, source_order_id)
            if workflow is None:
                return _failure("Workflow state not found for reprocessing")
            status = WorkflowStatus(workflow.status)
            if status is WorkflowStatus.COMPLETED:
                return _failure(
                    f"Workflow for order {source_order_id} is completed "
                    f"and cannot be reprocessed"
                )
            if status is not WorkflowStatus.ERROR and not workflow.error_count:
                return _failure(
                    f"Workflow for order {source_order_id} is not in an error state "
                    f"(status={workflow.status})"
                )
            # A live workflow with errors keeps its place once past processing
            target = (
                WorkflowStatus.PROCESSING
                if status is WorkflowStatus.ERROR
                or status.can_transition_to(WorkflowStatus.PROCESSING)
                else status
            )

            previous = {
                "previous_status": workflow.status,
                "previous_error": workflow.last_error,
                "previous_error_count": workflow.error_count,
            }
            await self._repo.update_workflow(
                db,
                workflow,
                {
                    "status": target.value,
                    "error_count": 0,
                    "last_error": None,
                    "last_error_at": None,
                },
            )
        except SQLAlchemyError as exc:
            logger.exception("Reprocessing failed for order %s", source_order_id)
            await self._rollback(db)
            return _failure(f"Reprocessing error: {exc}")

        await self._log.log_action(
            db,
            create_log_entry(
                WorkflowAction.WORKFLOW_RESTARTED,
                workflow.id,
                previous,
                performed_by=performed_by,
                automated=performed_by is None,
            ),
        )
        logger.info("Reprocessing initiated for order %s", source_order_id)
        return OrderProcessingResult(
            success=True,
            workflow_state_id=workflow.id,
            candidate_id=(
                workflow.wset_candidate.candidate_id
                if workflow.wset_candidate is not None
                else None
            ),
            warnings=["Order reprocessing initiated"],
        )

    # ==================================================================
    # Internal
    # ==================================================================

    async def _process(
        self, db: AsyncSession, order: SquarespaceOrder, today: date
    ) -> OrderProcessingResult:
        warnings: list[str] = []

        # --- 1. Idempotency ---
        existing = await self._repo.get_workflow_by_order(db, order.id)
        if existing is not None:
            logger.info("Order %s already processed", order.order_number)
            return _replay_result(existing)

        # --- 2. Course ---
        course = self._extractor.extract(order)
        if course is None:
            return _failure("Could not determine WSET course information from order")

        # --- 3. Exam date ---
        exam_date, defaulted = resolve_exam_date(order)
        if exam_date is None:
            return _failure("Could not determine exam date from order")
        if defaulted:
            warnings.append(DEFAULT_DATE_WARNING)

        # --- 4. Deadlines ---
        validation = validate_deadlines(
            exam_date, course.exam_type, course.course_level, today,
        )
        if validation.errors:
            logger.warning(
                "Order %s rejected: %s", order.order_number, "; ".join(validation.errors),
            )
            return _failure(f"WSET deadline violation: {', '.join(validation.errors)}")
        warnings.extend(validation.warnings)

        # --- 5. Address ---
        address = order.billing_address or order.shipping_address
        if address is None:
            return _failure("No address information found in order")

        review_reasons: list[str] = []
        if validation.working_days_remaining <= APPROACHING_DAYS:
            review_reasons.append(
                f"Submission deadline {validation.submission_deadline.isoformat()} "
                f"is {validation.working_days_remaining} working days away"
            )
        if defaulted:
            review_reasons.append("Exam date defaulted, not supplied by candidate")

        # --- 6-8. Persist ---
        stage = "candidate"
        try:
            person = await self._repo.get_candidate_by_email(db, order.customer_email)
            if person is None:
                person = await self._repo.create_candidate(
                    db,
                    first_name=address.first_name,
                    last_name=address.last_name,
                    email=order.customer_email,
                    phone=address.phone,
                    notes=f"Created from order {order.order_number}",
                )
                logger.info("Created candidate %s", person.id)
            else:
                logger.info("Using existing candidate %s", person.id)

            stage = "WSET candidate"
            form = order.form_submission
            enrollment = await self._repo.create_enrollment(
                db,
                candidate_id=person.id,
                source_order_id=order.id,
                order_number=order.order_number,
                course_type=course.course_type,
                course_level=course.course_level,
                exam_date=exam_date,
                exam_type=course.exam_type.value,
                full_address=format_address(address),
                birthdate=form.birthdate if form is not None else None,
                gender=form.gender if form is not None else None,
            )

            stage = "workflow state"
            now = datetime.now(timezone.utc)
            workflow = await self._repo.create_workflow(
                db,
                source_order_id=order.id,
                wset_candidate_id=enrollment.id,
                values={
                    "status": WorkflowStatus.RECEIVED.value,
                    WorkflowStep.ORDER_RECEIVED.flag_column: True,
                    WorkflowStep.ORDER_RECEIVED.timestamp_column: now,
                    WorkflowStep.CANDIDATE_CREATED.flag_column: True,
                    WorkflowStep.CANDIDATE_CREATED.timestamp_column: now,
                    "requires_review": bool(review_reasons),
                    "review_reason": "; ".join(review_reasons) or None,
                },
            )
        except IntegrityError:
            # Lost the race against a concurrent delivery of the same order
            await self._rollback(db)
            existing = await self._repo.get_workflow_by_order(db, order.id)
            if existing is not None:
                logger.info("Order %s processed concurrently", order.order_number)
                return _replay_result(existing)
            logger.exception("Failed to create %s for %s", stage, order.order_number)
            return _failure(f"Failed to create {stage}: integrity error")
        except SQLAlchemyError as exc:
            logger.exception("Failed to create %s for %s", stage, order.order_number)
            await self._rollback(db)
            return _failure(f"Failed to create {stage}: {exc}")

        await self._record_creation(db, workflow, order, validation, review_reasons)

        logger.info(
            "Processed order %s -> workflow %s", order.order_number, workflow.id,
        )
        return OrderProcessingResult(
            success=True,
            candidate_id=person.id,
            workflow_state_id=workflow.id,
            warnings=warnings,
        )

    async def _record_creation(self, db, workflow, order, validation, review_reasons) -> None:
        """Audit entries for a newly accepted order (best-effort)."""
        await self._log.log_action(
            db,
            create_log_entry(
                WorkflowAction.ORDER_RECEIVED,
                workflow.id,
                {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "customer_email": order.customer_email,
                },
            ),
        )
        await self._log.log_action(
            db,
            create_log_entry(
                WorkflowAction.CANDIDATE_CREATED,
                workflow.id,
                {"wset_candidate_id": str(workflow.wset_candidate_id)},
            ),
        )
        if review_reasons:
            await self._log.log_action(
                db,
                create_log_entry(
                    WorkflowAction.DEADLINE_WARNING,
                    workflow.id,
                    {
                        "submission_deadline": validation.submission_deadline.isoformat(),
                        "working_days_remaining": validation.working_days_remaining,
                        "reasons": review_reasons,
                    },
                ),
            )

    @staticmethod
    async def _rollback(db: AsyncSession) -> None:
        try:
            await db.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")
