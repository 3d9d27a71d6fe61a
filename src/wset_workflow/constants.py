"""WSET workflow constants shared across the SDK.

Deadline rules come from the exam board's submission requirements.
Each can be overridden via environment variables so a deployment can
follow a policy change without a code release.
"""

import os

# Working days of notice the exam board needs before an exam date.
PDF_EXAM_DAYS = int(os.getenv("WSET_PDF_EXAM_DAYS", "10"))
RI_EXAM_DAYS = int(os.getenv("WSET_RI_EXAM_DAYS", "7"))

# Level 1 in-person exams accept late additions up to this many working
# days before the exam.
LEVEL_1_LATE_DAYS = int(os.getenv("WSET_LEVEL_1_LATE_DAYS", "2"))

# Remaining-working-day thresholds for deadline warnings.  The
# approaching threshold also drives the workflow's requires_review flag.
URGENT_DAYS = int(os.getenv("WSET_URGENT_DAYS", "2"))
APPROACHING_DAYS = int(os.getenv("WSET_APPROACHING_DAYS", "5"))

# Calendar days after the order when no exam date was supplied (8 weeks).
DEFAULT_EXAM_OFFSET_DAYS = int(os.getenv("WSET_DEFAULT_EXAM_OFFSET_DAYS", "56"))

# Size of the recent-activity window on the dashboard.
RECENT_ACTIVITY_LIMIT = int(os.getenv("WSET_RECENT_ACTIVITY_LIMIT", "50"))

# Advanced levels need a prerequisite check before submission.
ADVANCED_LEVEL = 3

VALID_LEVELS: frozenset[int] = frozenset({1, 2, 3, 4})

# Webhook topics that carry an order worth processing.
ORDER_TOPICS: frozenset[str] = frozenset({"order.create", "order.update"})

# Substrings that mark a line item as a WSET course.
WSET_PRODUCT_MARKERS: tuple[str, ...] = ("wset", "wine", "level")
