"""Course extraction and exam-date resolution from storefront orders."""

from datetime import date

import pytest

from wset_db.models.enums import ExamType
from wset_workflow.extractor import (
    KeywordCourseExtractor,
    detect_exam_type,
    detect_level,
    format_address,
    parse_exam_date,
    resolve_exam_date,
)
from wset_workflow.models.order import Address

from helpers.orders import make_order


@pytest.fixture
def extractor():
    return KeywordCourseExtractor()


class TestOrderModel:

    def test_parses_camel_case_payload(self):
        order = make_order()
        assert order.order_number == "1001"
        assert order.line_items[0].product_name == "WSET Level 2 Award in Wines"
        assert order.billing_address.postal_code == "BS1 4DJ"
        assert order.form_submission.exam_date == "2026-03-31"


class TestLevelDetection:

    @pytest.mark.parametrize("name,level", [
        ("WSET Level 1 Award in Wines", 1),
        ("WSET Level 2 Award in Wines", 2),
        ("WSET Level 3 Award in Wines", 3),
        ("WSET Level 4 Diploma in Wines", 4),
        ("WSET Diploma", 4),
        ("Wine tasting evening", 1),
    ])
    def test_detect_level(self, name, level):
        assert detect_level(name) == level

    def test_level_number_needs_word_boundary(self):
        """'level 20' is not level 2."""
        assert detect_level("level 20 cellar tour") == 1


class TestExamTypeDetection:

    @pytest.mark.parametrize("name,exam_type", [
        ("WSET Level 3 Online", ExamType.RI),
        ("WSET Level 2 (Remote)", ExamType.RI),
        ("WSET Level 2 RI exam", ExamType.RI),
        ("WSET Level 2 Award in Wines", ExamType.PDF),
    ])
    def test_detect_exam_type(self, name, exam_type):
        assert detect_exam_type(name) is exam_type

    def test_ri_inside_a_word_does_not_match(self):
        """'Spring' or 'Riesling' must not flip the modality to RI."""
        assert detect_exam_type("Spring intake: WSET Level 1") is ExamType.PDF
        assert detect_exam_type("Riesling masterclass level 2") is ExamType.PDF


class TestKeywordCourseExtractor:

    def test_level_2_in_person(self, extractor):
        course = extractor.extract(make_order())
        assert course is not None
        assert course.course_level == 2
        assert course.exam_type is ExamType.PDF
        assert course.course_type == "WSET Level 2 Award in Wines"

    def test_first_course_item_wins(self, extractor):
        order = make_order(product_names=(
            "Corkscrew", "WSET Level 3 Award in Wines", "WSET Level 2 Award in Wines",
        ))
        course = extractor.extract(order)
        assert course.course_level == 3, "Non-course items are skipped, first course wins"

    def test_no_course_item_returns_none(self, extractor):
        order = make_order(product_names=("Gift card", "Corkscrew"))
        assert extractor.extract(order) is None

    def test_form_course_type_overrides_to_remote(self, extractor):
        order = make_order(course_type="Online (Remote Invigilation)")
        assert extractor.extract(order).exam_type is ExamType.RI

    def test_form_course_type_overrides_to_in_person(self, extractor):
        order = make_order(
            product_names=("WSET Level 2 Online",), course_type="In-person",
        )
        assert extractor.extract(order).exam_type is ExamType.PDF

    def test_unrecognised_form_answer_keeps_product_modality(self, extractor):
        order = make_order(product_names=("WSET Level 2 Online",), course_type="Weekend")
        assert extractor.extract(order).exam_type is ExamType.RI


class TestExamDate:

    @pytest.mark.parametrize("raw", [
        "2026-04-14",
        "04/14/2026",
        "April 14, 2026",
        "Apr 14, 2026",
        "2026-04-14T09:00:00",
        "2026-04-14T00:00:00Z",
        "2026-04-14T09:00:00.000Z",
        "  2026-04-14 ",
    ])
    def test_parse_formats(self, raw):
        assert parse_exam_date(raw) == date(2026, 4, 14)

    @pytest.mark.parametrize("raw", ["", "next tuesday", "14th of April"])
    def test_unparseable(self, raw):
        assert parse_exam_date(raw) is None

    def test_form_date_is_used(self):
        exam_date, defaulted = resolve_exam_date(make_order(exam_date="2026-04-14"))
        assert exam_date == date(2026, 4, 14)
        assert defaulted is False

    def test_missing_date_defaults_to_eight_weeks(self):
        exam_date, defaulted = resolve_exam_date(
            make_order(exam_date=None, created_on="2026-03-01T10:00:00Z"),
        )
        assert exam_date == date(2026, 4, 26)
        assert defaulted is True

    def test_unparseable_date_falls_back_to_default(self):
        exam_date, defaulted = resolve_exam_date(
            make_order(exam_date="sometime in spring", created_on="2026-03-01T10:00:00Z"),
        )
        assert exam_date == date(2026, 4, 26)
        assert defaulted is True


class TestFormatAddress:

    def test_skips_empty_parts(self):
        address = Address(
            address1="12 Cellar Lane", city="Bristol", postal_code="BS1 4DJ",
            country_code="GB",
        )
        assert format_address(address) == "12 Cellar Lane, Bristol, BS1 4DJ, GB"
