"""Best-effort keyword extraction of course details from storefront orders.

Product names are free text, so level and modality are inferred from
keywords.  Matching is case-insensitive and on word boundaries so that
short markers such as ``ri`` or ``l2`` do not fire inside longer words.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta

from wset_db.models.enums import ExamType

from wset_workflow.constants import DEFAULT_EXAM_OFFSET_DAYS, WSET_PRODUCT_MARKERS
from wset_workflow.interfaces import CourseExtractor, CourseInfo
from wset_workflow.models.order import Address, SquarespaceOrder

logger = logging.getLogger(__name__)

# Checked in order; first match wins, no match means level 1.
_LEVEL_PATTERNS: list[tuple[int, re.Pattern[str]]] = [
    (2, re.compile(r"\blevel\s*2\b|\bl2\b")),
    (3, re.compile(r"\blevel\s*3\b|\bl3\b")),
    (4, re.compile(r"\blevel\s*4\b|\bl4\b|\bdiploma\b")),
]
_LEVEL_1_PATTERN = re.compile(r"\blevel\s*1\b|\bl1\b")

_REMOTE_PATTERN = re.compile(r"\b(online|remote|ri)\b")
_IN_PERSON_PATTERN = re.compile(r"\bin[\s-]?person\b|\bclassroom\b")

_COURSE_MARKERS = re.compile(
    r"\b(" + "|".join(re.escape(m) for m in WSET_PRODUCT_MARKERS) + r")"
)

_EXAM_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%B %d, %Y", "%b %d, %Y")


def _is_course_item(name: str) -> bool:
    if _COURSE_MARKERS.search(name) or _LEVEL_1_PATTERN.search(name):
        return True
    return any(pattern.search(name) for _, pattern in _LEVEL_PATTERNS)


def detect_level(text: str) -> int:
    lowered = text.lower()
    for level, pattern in _LEVEL_PATTERNS:
        if pattern.search(lowered):
            return level
    return 1


def detect_exam_type(text: str) -> ExamType:
    if _REMOTE_PATTERN.search(text.lower()):
        return ExamType.RI
    return ExamType.PDF


class KeywordCourseExtractor(CourseExtractor):
    """Infer level and modality from line-item product names.

    The first line item that looks like a WSET course wins.  A
    ``courseType`` answer on the checkout form overrides the modality
    inferred from the product name.
    """

    def extract(self, order: SquarespaceOrder) -> CourseInfo | None:
        for item in order.line_items:
            name = item.product_name.lower()
            if not _is_course_item(name):
                continue

            exam_type = detect_exam_type(name)
            form = order.form_submission
            if form is not None and form.course_type:
                preference = form.course_type.lower()
                if _REMOTE_PATTERN.search(preference):
                    exam_type = ExamType.RI
                elif _IN_PERSON_PATTERN.search(preference):
                    exam_type = ExamType.PDF

            return CourseInfo(
                course_type=item.product_name,
                course_level=detect_level(name),
                exam_type=exam_type,
            )

        logger.info(
            "No course line item in order %s (%d items)",
            order.order_number, len(order.line_items),
        )
        return None


def parse_exam_date(raw: str) -> date | None:
    """Parse an exam date typed into the checkout form."""
    raw = raw.strip()
    if not raw:
        return None
    for fmt in _EXAM_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    if raw.endswith(("Z", "z")):
        # fromisoformat only accepts the UTC suffix from 3.11 on
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        return None


def resolve_exam_date(order: SquarespaceOrder) -> tuple[date | None, bool]:
    """Return ``(exam_date, defaulted)``.

    Prefers the exam date from the checkout form.  Otherwise falls back to
    ``DEFAULT_EXAM_OFFSET_DAYS`` after the order date, and ``defaulted`` is
    true so the caller can flag the workflow for review.
    """
    form = order.form_submission
    if form is not None and form.exam_date:
        parsed = parse_exam_date(form.exam_date)
        if parsed is not None:
            return parsed, False
        logger.warning(
            "Unparseable exam date %r on order %s, using default",
            form.exam_date, order.order_number,
        )

    if order.created_on is None:
        return None, False
    return order.created_on.date() + timedelta(days=DEFAULT_EXAM_OFFSET_DAYS), True


def format_address(address: Address) -> str:
    parts = [
        address.address1,
        address.address2,
        address.city,
        address.state,
        address.postal_code,
        address.country_code,
    ]
    return ", ".join(p for p in parts if p)
