"""
Gregorian Deriver — standard calendar attributes for a single date.

Two week conventions are carried side by side:
  - ISO weeks (Monday start, ISO year-of-week)
  - the configurable "calendar" week, whose first day is ``week_start``
    (0=Sunday ... 6=Saturday); the week containing January 1 is week 1

Names are fixed English constants so output never depends on the host locale.
"""

from datetime import date, timedelta
from typing import NamedTuple

from calendar_engine.dates import (
    add_years,
    days_in_month,
    month_end,
    month_start,
    quarter_end,
    quarter_of,
    quarter_start,
    year_end,
    year_start,
)

MONTH_SHORT_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MONTH_LONG_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
# Indexed by ISO weekday - 1
DAY_SHORT_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
DAY_LONG_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class GregorianAttributes(NamedTuple):
    date_key: int
    year_num: int
    year_desc: str
    quarter_num: int
    quarter_desc: str
    year_quarter_key: int
    month_num: int
    month_short_name: str
    month_long_name: str
    year_month_key: int
    month_year_desc: str
    week_of_year_num: int
    year_of_week_num: int
    year_week_desc: str
    iso_week_num: int
    iso_year_of_week_num: int
    iso_year_week_desc: str
    day_of_month_num: int
    day_of_week_num: int  # 0-based from week_start
    iso_day_of_week_num: int  # 1=Mon ... 7=Sun
    day_of_year_num: int
    day_short_name: str
    day_long_name: str
    date_full_desc: str
    date_formatted: str
    week_start_date: date
    week_end_date: date
    month_start_date: date
    month_end_date: date
    quarter_start_date: date
    quarter_end_date: date
    year_start_date: date
    year_end_date: date
    day_of_month_count: int
    days_in_month_count: int
    day_of_quarter_count: int
    days_in_quarter_count: int
    week_of_month_num: int
    week_of_quarter_num: int
    is_weekday: bool
    weekday_indicator: str
    same_date_last_year: date


def date_key(dt: date) -> int:
    """YYYYMMDD integer key."""
    return dt.year * 10000 + dt.month * 100 + dt.day


class GregorianDeriver:
    """Derives GregorianAttributes; ``week_start`` sets the calendar week convention."""

    def __init__(self, week_start: int = 0):
        if not 0 <= week_start <= 6:
            raise ValueError(f"week_start must be 0-6 (0=Sunday), got {week_start}")
        self.week_start = week_start

    def day_of_week(self, dt: date) -> int:
        """0-based position of ``dt`` within its calendar week."""
        return (dt.isoweekday() % 7 - self.week_start) % 7

    def week_of_year(self, dt: date) -> int:
        jan1_offset = self.day_of_week(date(dt.year, 1, 1))
        return (dt.timetuple().tm_yday - 1 + jan1_offset) // 7 + 1

    def derive(self, dt: date) -> GregorianAttributes:
        year, month, day = dt.year, dt.month, dt.day
        quarter = quarter_of(dt)
        iso_year, iso_week, iso_weekday = dt.isocalendar()
        dow = self.day_of_week(dt)
        week_num = self.week_of_year(dt)

        q_start = quarter_start(dt)
        q_end = quarter_end(dt)
        day_of_quarter = (dt - q_start).days + 1
        is_weekday = iso_weekday <= 5
        week_start_date = dt - timedelta(days=dow)

        return GregorianAttributes(
            date_key=date_key(dt),
            year_num=year,
            year_desc=f"CY{year % 100:02d}",
            quarter_num=quarter,
            quarter_desc=f"Q{quarter}",
            year_quarter_key=year * 10 + quarter,
            month_num=month,
            month_short_name=MONTH_SHORT_NAMES[month - 1],
            month_long_name=MONTH_LONG_NAMES[month - 1],
            year_month_key=year * 100 + month,
            month_year_desc=f"{MONTH_SHORT_NAMES[month - 1]} {year}",
            week_of_year_num=week_num,
            year_of_week_num=year,
            year_week_desc=f"{year}-W{week_num:02d}",
            iso_week_num=iso_week,
            iso_year_of_week_num=iso_year,
            iso_year_week_desc=f"{iso_year}-W{iso_week:02d}",
            day_of_month_num=day,
            day_of_week_num=dow,
            iso_day_of_week_num=iso_weekday,
            day_of_year_num=dt.timetuple().tm_yday,
            day_short_name=DAY_SHORT_NAMES[iso_weekday - 1],
            day_long_name=DAY_LONG_NAMES[iso_weekday - 1],
            date_full_desc=f"{day:02d} {MONTH_SHORT_NAMES[month - 1]} {year}",
            date_formatted=f"{day:02d}/{month:02d}/{year}",
            week_start_date=week_start_date,
            week_end_date=week_start_date + timedelta(days=6),
            month_start_date=month_start(dt),
            month_end_date=month_end(dt),
            quarter_start_date=q_start,
            quarter_end_date=q_end,
            year_start_date=year_start(dt),
            year_end_date=year_end(dt),
            day_of_month_count=day,
            days_in_month_count=days_in_month(year, month),
            day_of_quarter_count=day_of_quarter,
            days_in_quarter_count=(q_end - q_start).days + 1,
            week_of_month_num=(day + 6) // 7,
            week_of_quarter_num=(day_of_quarter + 6) // 7,
            is_weekday=is_weekday,
            weekday_indicator="Weekday" if is_weekday else "Weekend",
            same_date_last_year=add_years(dt, -1),
        )
