"""Deadline check endpoint — validate an exam sitting without creating anything."""

from datetime import date

from fastapi import APIRouter, Query
from pydantic import BaseModel

from wset_db.models.enums import ExamType
from wset_workflow.deadline import get_next_submission_date, validate_deadlines
from wset_workflow.models.deadline import DeadlineValidation

router = APIRouter(prefix="/deadlines", tags=["deadlines"])


class DeadlineCheckResponse(BaseModel):
    validation: DeadlineValidation
    can_submit_today: bool
    next_submission_date: date | None = None


@router.get("/check")
async def check_deadline(
    exam_date: date = Query(...),
    exam_type: ExamType = Query(...),
    level: int = Query(..., ge=1, le=4),
    as_of: date | None = Query(None, description="Reference date (default: today)"),
) -> DeadlineCheckResponse:
    """Validate an exam sitting against the submission deadline rules."""
    validation = validate_deadlines(exam_date, exam_type, level, as_of)
    return DeadlineCheckResponse(
        validation=validation,
        can_submit_today=validation.is_compliant or validation.can_submit_late,
        next_submission_date=get_next_submission_date(
            exam_date, exam_type, level, as_of,
        ),
    )
