"""
Payment due date rules for a cycle.
"""

import calendar
from datetime import date, datetime, time, timezone
from typing import Optional

from ledger.subscriptions.models.domain.enums import PaymentMode


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)


def _clamped(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def calculate_payment_due_date(
    cycle_start: date,
    cycle_end: date,
    payment_mode: PaymentMode,
    payment_due_day: Optional[int] = None,
) -> datetime:
    """
    Compute when a cycle must be paid.

    - ADVANCE plans are due on the first day of the cycle.
    - With a fixed due day, the cycle is due on that day of the month the
      cycle ends in, or of the following month if that day is not after
      cycle_end. Days past the end of a short month are clamped.
    - Otherwise the cycle is due on its last day.

    Returns the end of the due day in UTC, so payments made on the due day
    are never late.
    """
    if payment_mode == PaymentMode.ADVANCE:
        return _end_of_day(cycle_start)

    if payment_due_day:
        due = _clamped(cycle_end.year, cycle_end.month, payment_due_day)
        if due <= cycle_end:
            year = cycle_end.year + (1 if cycle_end.month == 12 else 0)
            month = 1 if cycle_end.month == 12 else cycle_end.month + 1
            due = _clamped(year, month, payment_due_day)
        return _end_of_day(due)

    return _end_of_day(cycle_end)
