"""Working-day arithmetic.

A working day is Monday to Friday.  No holiday calendar is applied, which
matches how the exam board counts notice periods.
"""

from datetime import date, timedelta

_ONE_DAY = timedelta(days=1)


def is_working_day(day: date) -> bool:
    # weekday(): Monday == 0 ... Sunday == 6
    return day.weekday() < 5


def count_working_days(start: date, end: date) -> int:
    """Count working days in the inclusive range ``[start, end]``.

    Returns 0 when ``end`` is before ``start``.
    """
    count = 0
    current = start
    while current <= end:
        if is_working_day(current):
            count += 1
        current += _ONE_DAY
    return count


def add_working_days(start: date, days: int) -> date:
    """Move ``days`` working days away from ``start``.

    Steps one calendar day at a time and counts only weekdays, so the
    result is always a working day when ``days`` is non-zero.  A negative
    ``days`` counts backwards.  ``start`` itself is never counted.
    """
    step = _ONE_DAY if days >= 0 else -_ONE_DAY
    remaining = abs(days)
    current = start
    while remaining > 0:
        current += step
        if is_working_day(current):
            remaining -= 1
    return current
