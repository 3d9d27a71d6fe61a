"""Abstract interfaces for pluggable workflow stages.

Course extraction from storefront orders is heuristic.  It sits behind
this interface so a structured product-catalogue lookup can replace the
keyword matcher without touching the validator or the processor.

Typical integration::

    extractor: CourseExtractor = KeywordCourseExtractor()
    processor = OrderProcessor(extractor=extractor)
    result = await processor.process_order(db, order)
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from wset_db.models.enums import ExamType

from wset_workflow.models.order import SquarespaceOrder


class CourseInfo(BaseModel):
    """Course details recovered from an order."""

    course_type: str
    course_level: int
    exam_type: ExamType


class CourseExtractor(ABC):
    """Interface for recovering course details from an order."""

    @abstractmethod
    def extract(self, order: SquarespaceOrder) -> CourseInfo | None:
        """Return the course the order enrolls in, or ``None`` when no
        line item identifies one."""
        ...
