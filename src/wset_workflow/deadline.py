"""Exam-board submission deadline rules.

Every exam sitting must be submitted a fixed number of working days before
the exam: 10 for in-person (PDF) exams, 7 for Remote Invigilation (RI).
Level 1 in-person exams are the one exception: candidates may still be
added up to 2 working days before the exam once the normal deadline has
passed.

All functions take the reference date explicitly (``as_of``) so results
are deterministic; ``None`` means today.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable

from wset_db.models.enums import ExamType

from wset_workflow.constants import (
    ADVANCED_LEVEL,
    APPROACHING_DAYS,
    LEVEL_1_LATE_DAYS,
    PDF_EXAM_DAYS,
    RI_EXAM_DAYS,
    URGENT_DAYS,
    VALID_LEVELS,
)
from wset_workflow.models.deadline import DeadlineSummary, DeadlineValidation
from wset_workflow.working_days import add_working_days, count_working_days

URGENT_WARNING = "Very close to WSET deadline - urgent submission required"
APPROACHING_WARNING = "Approaching WSET deadline - submission recommended soon"
RI_WARNING = "Remote Invigilation exam - ensure technical requirements are confirmed"
ADVANCED_WARNING = "Advanced level exam - verify all candidate prerequisites are met"
LATE_PASSED_ERROR = "Even Level 1 late submission deadline has passed. Cannot submit exam."


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def required_working_days(exam_type: ExamType | str) -> int:
    """Working days of notice the exam board needs for ``exam_type``."""
    return PDF_EXAM_DAYS if ExamType(exam_type) is ExamType.PDF else RI_EXAM_DAYS


def late_submission_allowed(exam_type: ExamType | str, level: int) -> bool:
    """Whether the exam has a late-submission window at all."""
    return level == 1 and ExamType(exam_type) is ExamType.PDF


def submission_deadline(exam_date: date, exam_type: ExamType | str) -> date:
    return add_working_days(exam_date, -required_working_days(exam_type))


def late_submission_deadline(exam_date: date) -> date:
    return add_working_days(exam_date, -LEVEL_1_LATE_DAYS)


def validate_deadlines(
    exam_date: date | datetime,
    exam_type: ExamType | str,
    level: int,
    as_of: date | datetime | None = None,
) -> DeadlineValidation:
    """Check an exam sitting against the submission deadline rules.

    ``working_days_remaining`` counts the working days after ``as_of`` up
    to and including the deadline, so it is 0 on the deadline day itself
    and never negative.

    Raises:
        ValueError: if ``exam_type`` or ``level`` is outside the allowed set
    """
    exam_date = _as_date(exam_date)
    today = _as_date(as_of)
    exam_type = ExamType(exam_type)
    if level not in VALID_LEVELS:
        raise ValueError(f"Invalid WSET level: {level}")

    warnings: list[str] = []
    errors: list[str] = []

    required_days = required_working_days(exam_type)
    deadline = submission_deadline(exam_date, exam_type)
    remaining = count_working_days(today + timedelta(days=1), deadline)
    is_compliant = today <= deadline

    can_submit_late = False
    late_deadline = None
    if late_submission_allowed(exam_type, level):
        late_deadline = late_submission_deadline(exam_date)
        if not is_compliant:
            if today <= late_deadline:
                can_submit_late = True
                warnings.append(
                    f"Level 1 late submission allowed - must be submitted "
                    f"{LEVEL_1_LATE_DAYS} working days before exam"
                )
            else:
                errors.append(LATE_PASSED_ERROR)

    if is_compliant:
        if remaining <= URGENT_DAYS:
            warnings.append(URGENT_WARNING)
        elif remaining <= APPROACHING_DAYS:
            warnings.append(APPROACHING_WARNING)
    elif late_deadline is None:
        errors.append(
            f"WSET deadline has passed. {exam_type.value} exams require "
            f"{required_days} working days notice."
        )

    # Unconditional advisories
    if exam_type is ExamType.RI:
        warnings.append(RI_WARNING)
    if level >= ADVANCED_LEVEL:
        warnings.append(ADVANCED_WARNING)

    return DeadlineValidation(
        exam_date=exam_date,
        exam_type=exam_type,
        level=level,
        submission_deadline=deadline,
        late_deadline=late_deadline,
        working_days_remaining=max(0, remaining),
        is_compliant=is_compliant,
        can_submit_late=can_submit_late,
        warnings=warnings,
        errors=errors,
    )


def can_submit_today(
    exam_date: date | datetime,
    exam_type: ExamType | str,
    level: int,
    as_of: date | datetime | None = None,
) -> bool:
    validation = validate_deadlines(exam_date, exam_type, level, as_of)
    return validation.is_compliant or validation.can_submit_late


def get_next_submission_date(
    exam_date: date | datetime,
    exam_type: ExamType | str,
    level: int,
    as_of: date | datetime | None = None,
) -> date | None:
    """Latest date the exam can still be submitted, or ``None`` if none remains.

    For level 1 in-person exams this is the late deadline; for everything
    else the normal deadline.
    """
    exam_date = _as_date(exam_date)
    today = _as_date(as_of)
    if late_submission_allowed(exam_type, level):
        latest = late_submission_deadline(exam_date)
    else:
        latest = submission_deadline(exam_date, exam_type)
    if today > latest:
        return None
    return latest


def generate_deadline_summary(
    validations: Iterable[DeadlineValidation],
) -> DeadlineSummary:
    """Bucket validations by urgency: overdue, urgent, warning, compliant."""
    summary = DeadlineSummary()
    for validation in validations:
        if validation.errors:
            summary.overdue.append(validation)
        elif validation.working_days_remaining <= URGENT_DAYS:
            summary.urgent.append(validation)
        elif validation.working_days_remaining <= APPROACHING_DAYS or validation.warnings:
            summary.warning.append(validation)
        else:
            summary.compliant.append(validation)
    return summary
