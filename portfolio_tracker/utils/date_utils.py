# portfolio_tracker/utils/date_utils.py
"""
Calendar-day helpers shared by the analytics services.

Snapshots have one-day granularity, so everything here works on plain
``date`` values. Datetimes are truncated to their date.

Usage:
    from portfolio_tracker.utils.date_utils import subtract_months

    subtract_months(date(2024, 3, 31), 1)  # date(2024, 2, 29)
"""

import calendar
from datetime import date, datetime

from portfolio_tracker.services.constants import DAYS_PER_YEAR


def to_calendar_date(value: date | datetime) -> date:
    """
    Truncate a datetime to its calendar date.

    ``datetime`` is a subclass of ``date``, so the check order matters.
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def subtract_months(d: date, months: int) -> date:
    """
    Move a date back by whole calendar months.

    The day is clamped to the last day of the resulting month, so
    March 31 minus one month is February 28 (or 29 in a leap year).

    Args:
        d: Starting date
        months: Number of months to go back (negative moves forward)

    Returns:
        The shifted date

    Example:
        >>> subtract_months(date(2023, 3, 31), 1)
        datetime.date(2023, 2, 28)
        >>> subtract_months(date(2024, 1, 15), 12)
        datetime.date(2023, 1, 15)
    """
    month_index = d.year * 12 + (d.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


def subtract_days(d: date, days: int) -> date:
    """Move a date back by a number of days."""
    return date.fromordinal(d.toordinal() - days)


def days_between(start: date, end: date) -> int:
    """Signed number of calendar days from start to end."""
    return (end - start).days


def years_between(start: date, end: date) -> float:
    """
    Elapsed years between two dates, using 365.25 days per year.

    Returns a float because CAGR is evaluated in floating point.
    """
    return days_between(start, end) / DAYS_PER_YEAR
