"""Working-day arithmetic (Monday to Friday, no holidays)."""

from datetime import date, timedelta

import pytest

from wset_workflow.working_days import (
    add_working_days,
    count_working_days,
    is_working_day,
)

MONDAY = date(2026, 3, 2)
FRIDAY = date(2026, 3, 6)
SATURDAY = date(2026, 3, 7)
SUNDAY = date(2026, 3, 8)
NEXT_MONDAY = date(2026, 3, 9)


class TestIsWorkingDay:

    def test_weekdays_are_working_days(self):
        for offset in range(5):
            assert is_working_day(MONDAY + timedelta(days=offset))

    def test_weekend_is_not(self):
        assert not is_working_day(SATURDAY)
        assert not is_working_day(SUNDAY)


class TestCountWorkingDays:

    def test_weekday_span_is_inclusive_day_count(self):
        """Mon..Fri counts both ends."""
        assert count_working_days(MONDAY, FRIDAY) == 5

    def test_span_with_weekend_subtracts_weekend_days(self):
        """Mon..next Mon is 8 calendar days with 2 weekend days."""
        assert count_working_days(MONDAY, NEXT_MONDAY) == 6

    def test_single_day(self):
        assert count_working_days(MONDAY, MONDAY) == 1
        assert count_working_days(SATURDAY, SATURDAY) == 0

    def test_weekend_only_span(self):
        assert count_working_days(SATURDAY, SUNDAY) == 0

    def test_reversed_range_is_zero(self):
        """end < start returns 0 rather than a negative count."""
        assert count_working_days(NEXT_MONDAY, MONDAY) == 0

    def test_long_span(self):
        """Four full weeks contain exactly 20 working days."""
        assert count_working_days(MONDAY, MONDAY + timedelta(days=27)) == 20


class TestAddWorkingDays:

    def test_forward_skips_weekend(self):
        assert add_working_days(FRIDAY, 1) == NEXT_MONDAY

    def test_backward_skips_weekend(self):
        assert add_working_days(NEXT_MONDAY, -1) == FRIDAY

    def test_from_weekend_lands_on_weekday(self):
        assert add_working_days(SATURDAY, 1) == NEXT_MONDAY
        assert add_working_days(SUNDAY, -1) == FRIDAY

    def test_zero_is_identity(self):
        assert add_working_days(SATURDAY, 0) == SATURDAY

    def test_ten_working_days_back(self):
        """Ten working days before Mon 30 March is Mon 16 March."""
        assert add_working_days(date(2026, 3, 30), -10) == date(2026, 3, 16)

    @pytest.mark.parametrize("n", [1, 2, 5, 7, 10, 23])
    def test_inverse_returns_to_start(self, n):
        """Adding then subtracting n working days from a weekday is a no-op."""
        for offset in range(5):
            day = MONDAY + timedelta(days=offset)
            back = add_working_days(add_working_days(day, n), -n)
            assert back == day, f"{day} +{n} -{n} landed on {back}"

    @pytest.mark.parametrize("n", [1, 3, 10])
    def test_result_is_n_working_days_away(self, n):
        """The span after start up to the result holds exactly n working days."""
        result = add_working_days(FRIDAY, n)
        assert count_working_days(FRIDAY + timedelta(days=1), result) == n
