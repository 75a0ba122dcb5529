"""
Retail Calendar — AU 4-4-5 family retail year anchored to July.

The retail year:
  - Starts on the first Monday falling within July 1-7
  - Runs 52 weeks, or 53 when the next anchor is 371 days away
  - Is named for the calendar year its week 52 lands in (start + 363 days)
  - Splits into 12 periods of 4 or 5 weeks per quarter under the active
    pattern: 445, 454 or 544. Week 53 always belongs to period 12.

Period 1 carries the July label, so period names run Jul .. Jun.
"""

from collections.abc import Iterable, Iterator
from datetime import date, timedelta
from functools import lru_cache
from typing import NamedTuple

from core.errors import CalendarConfigError, InvalidInputError

RETAIL_PATTERNS: dict[str, tuple[int, int, int]] = {
    "445": (4, 4, 5),
    "454": (4, 5, 4),
    "544": (5, 4, 4),
}
LEAP_WEEK = 53

PERIOD_SHORT_NAMES = ("Jul", "Aug", "Sep", "Oct", "Nov", "Dec", "Jan", "Feb", "Mar", "Apr", "May", "Jun")
PERIOD_LONG_NAMES = (
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
)


class RetailAttributes(NamedTuple):
    retail_year_num: int
    retail_year_desc: str
    retail_start_of_year: date
    retail_end_of_year: date
    retail_weeks_in_year: int  # 52 or 53
    retail_half_num: int  # 1-2
    retail_half_desc: str
    retail_quarter_num: int  # 1-4
    retail_quarter_desc: str
    retail_quarter_year_key: int
    retail_quarter_start_date: date
    retail_quarter_end_date: date
    retail_period_num: int  # 1-12
    retail_period_desc: str
    retail_year_month_key: int
    retail_period_start_date: date
    retail_period_end_date: date
    retail_month_short_name: str
    retail_month_long_name: str
    retail_month_year_desc: str
    retail_month_full_year_desc: str
    retail_week_num: int  # 1-53
    retail_week_start_date: date
    retail_week_end_date: date


# ── Pattern Tables ───────────────────────────────────────────────────────


def build_period_table(pattern: str) -> tuple[int, ...]:
    """Week -> period lookup for weeks 1..53 (index 0 is week 1).

    Raises CalendarConfigError for an unknown pattern or a table that does
    not cover every week exactly once.
    """
    weeks_per_period = RETAIL_PATTERNS.get(str(pattern))
    if weeks_per_period is None:
        raise CalendarConfigError(
            f"Unknown retail pattern {pattern!r}; expected one of {sorted(RETAIL_PATTERNS)}"
        )

    table: list[int] = []
    for period in range(1, 13):
        table.extend([period] * weeks_per_period[(period - 1) % 3])
    table.append(12)  # leap week

    if len(table) != LEAP_WEEK or set(table) != set(range(1, 13)):
        raise CalendarConfigError(f"Retail pattern {pattern!r} is not total over weeks 1-{LEAP_WEEK}")
    if any(later < earlier for earlier, later in zip(table, table[1:])):
        raise CalendarConfigError(f"Retail pattern {pattern!r} assigns periods out of order")
    return tuple(table)


# ── Anchors ──────────────────────────────────────────────────────────────


def is_retail_year_anchor(dt: date) -> bool:
    """A Monday in the first seven days of July."""
    return dt.month == 7 and dt.day <= 7 and dt.isoweekday() == 1


@lru_cache(maxsize=256)
def retail_year_anchor(year: int) -> date:
    """First Monday on or after July 1 of ``year``."""
    july1 = date(year, 7, 1)
    return july1 + timedelta(days=(8 - july1.isoweekday()) % 7)


def retail_year_start(dt: date) -> date:
    """Latest anchor on or before ``dt``."""
    anchor = retail_year_anchor(dt.year)
    return anchor if dt >= anchor else retail_year_anchor(dt.year - 1)


def scan_year_starts(dates: Iterable[date]) -> Iterator[tuple[date, date]]:
    """Pair each ascending date with its retail year start via a running marker scan.

    The marker is seeded with the anchor preceding the first date so a range
    starting mid-year still resolves its first partial year.
    """
    marker: date | None = None
    for dt in dates:
        if marker is None:
            marker = retail_year_start(dt)
        elif is_retail_year_anchor(dt):
            marker = dt
        yield dt, marker


# ── Deriver ──────────────────────────────────────────────────────────────


class RetailCalendarDeriver:
    """Derives RetailAttributes for one 445/454/544 pattern."""

    def __init__(self, pattern: str = "445"):
        self.pattern = str(pattern)
        self.period_table = build_period_table(self.pattern)
        # first retail week of each period, index 0 = period 1
        self._period_first_week = tuple(self.period_table.index(p) + 1 for p in range(1, 13))

    # ── Year / Period Boundaries ─────────────────────────────────────

    @staticmethod
    def year_bounds_for_start(start: date) -> tuple[date, date]:
        end = retail_year_anchor(start.year + 1) - timedelta(days=1)
        return start, end

    @staticmethod
    def retail_year_num_for_start(start: date) -> int:
        return (start + timedelta(days=363)).year

    def year_bounds(self, retail_year: int) -> tuple[date, date]:
        """Start and end of the retail year named ``retail_year``."""
        return self.year_bounds_for_start(retail_year_anchor(retail_year - 1))

    def period_of_week(self, week: int) -> int:
        if not 1 <= week <= LEAP_WEEK:
            raise InvalidInputError(f"Retail week must be 1-{LEAP_WEEK}, got {week}")
        return self.period_table[week - 1]

    def period_bounds(self, retail_year: int, period: int) -> tuple[date, date]:
        """First and last day of ``period`` in ``retail_year``; period 12 absorbs week 53."""
        if period is None or not 1 <= period <= 12:
            raise InvalidInputError(f"Retail period must be 1-12, got {period}")
        start_of_year, end_of_year = self.year_bounds(retail_year)
        start = start_of_year + timedelta(weeks=self._period_first_week[period - 1] - 1)
        if period == 12:
            return start, end_of_year
        next_start = start_of_year + timedelta(weeks=self._period_first_week[period] - 1)
        return start, next_start - timedelta(days=1)

    def quarter_bounds(self, retail_year: int, quarter: int) -> tuple[date, date]:
        first_period = (quarter - 1) * 3 + 1
        start, _ = self.period_bounds(retail_year, first_period)
        _, end = self.period_bounds(retail_year, first_period + 2)
        return start, end

    @staticmethod
    def period_for_month(month: int) -> int:
        """Retail period carrying the label of a Gregorian month (Jul -> 1)."""
        return (month - 7) % 12 + 1

    @staticmethod
    def month_for_period(period: int) -> int:
        """Gregorian month a retail period is labelled with (1 -> Jul)."""
        return (period + 5) % 12 + 1

    # ── Derivation ───────────────────────────────────────────────────

    def derive(self, dt: date, year_start: date | None = None) -> RetailAttributes:
        start = year_start if year_start is not None else retail_year_start(dt)
        start, end = self.year_bounds_for_start(start)
        retail_year = self.retail_year_num_for_start(start)

        week = (dt - start).days // 7 + 1
        period = self.period_of_week(week)
        quarter = (period - 1) // 3 + 1
        half = 1 if period <= 6 else 2

        period_start, period_end = self.period_bounds(retail_year, period)
        quarter_start, quarter_end = self.quarter_bounds(retail_year, quarter)
        week_start = start + timedelta(weeks=week - 1)

        return RetailAttributes(
            retail_year_num=retail_year,
            retail_year_desc=f"F{retail_year % 100:02d}",
            retail_start_of_year=start,
            retail_end_of_year=end,
            retail_weeks_in_year=((end - start).days + 1) // 7,
            retail_half_num=half,
            retail_half_desc=f"HALF {half}",
            retail_quarter_num=quarter,
            retail_quarter_desc=f"QTR {quarter}",
            retail_quarter_year_key=retail_year * 10 + quarter,
            retail_quarter_start_date=quarter_start,
            retail_quarter_end_date=quarter_end,
            retail_period_num=period,
            retail_period_desc=f"MONTH {period}",
            retail_year_month_key=retail_year * 100 + period,
            retail_period_start_date=period_start,
            retail_period_end_date=period_end,
            retail_month_short_name=PERIOD_SHORT_NAMES[period - 1],
            retail_month_long_name=PERIOD_LONG_NAMES[period - 1],
            retail_month_year_desc=f"{PERIOD_SHORT_NAMES[period - 1]} {retail_year}",
            retail_month_full_year_desc=f"{PERIOD_LONG_NAMES[period - 1]} {retail_year}",
            retail_week_num=week,
            retail_week_start_date=week_start,
            retail_week_end_date=week_start + timedelta(days=6),
        )

    def period_dates(self, retail_year: int, period: int) -> Iterator[date]:
        """Lazily yield every date in a retail period."""
        start, end = self.period_bounds(retail_year, period)
        current = start
        while current <= end:
            yield current
            current += timedelta(days=1)
