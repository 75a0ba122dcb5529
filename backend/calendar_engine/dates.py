"""
Date Arithmetic — period truncation and month math shared by every deriver.

All helpers take and return ``datetime.date``. Month arithmetic clamps to
the last day of the target month (Jan 31 + 1 month = Feb 28/29), which is
the behaviour every period-boundary calculation in the calendar relies on.
"""

from calendar import monthrange
from datetime import date, timedelta

ONE_DAY = timedelta(days=1)


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def add_months(dt: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(dt.day, days_in_month(year, month)))


def add_years(dt: date, years: int) -> date:
    return add_months(dt, years * 12)


def months_between(start: date, end: date) -> int:
    """Whole calendar-month boundaries crossed from ``start`` to ``end`` (day ignored)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_start(dt: date) -> date:
    return dt.replace(day=1)


def month_end(dt: date) -> date:
    return dt.replace(day=days_in_month(dt.year, dt.month))


def quarter_of(dt: date) -> int:
    return (dt.month - 1) // 3 + 1


def quarter_start(dt: date) -> date:
    return date(dt.year, (quarter_of(dt) - 1) * 3 + 1, 1)


def quarter_end(dt: date) -> date:
    return add_months(quarter_start(dt), 3) - ONE_DAY


def year_start(dt: date) -> date:
    return date(dt.year, 1, 1)


def year_end(dt: date) -> date:
    return date(dt.year, 12, 31)


def nth_weekday_of_month(year: int, month: int, iso_weekday: int, n: int) -> date | None:
    """Find the nth occurrence of an ISO weekday (1=Mon..7=Sun) in a month.

    n: 1=first, 2=second, -1=last, -2=second last. Returns None when the
    month has no such occurrence (e.g. a 5th Tuesday).
    """
    if n > 0:
        first = date(year, month, 1)
        offset = (iso_weekday - first.isoweekday()) % 7
        result = first + timedelta(days=offset, weeks=n - 1)
    else:
        last_day = date(year, month, days_in_month(year, month))
        offset = (last_day.isoweekday() - iso_weekday) % 7
        result = last_day - timedelta(days=offset, weeks=-n - 1)
    if result.year != year or result.month != month:
        return None
    return result


def date_range(start: date, end: date):
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += ONE_DAY
